"""
Main entry point for the wechat_mirror package.

Allows running the CLI as: python -m wechat_mirror
"""

from wechat_mirror.cli import main

if __name__ == "__main__":
    main()
