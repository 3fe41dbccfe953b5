"""
ElfProbe Entry Point
=====================

Allows running the CLI via: python -m elfprobe
"""

from elfprobe.cli import main

if __name__ == "__main__":
    main()
