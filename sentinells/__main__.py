"""
Runs the Sentinel Language Server with: python -m sentinells
"""
from sentinells.main import main

if __name__ == "__main__":
    main()
