"""Allow ``python -m namecheap_mcp``."""

from namecheap_mcp.cli import main

if __name__ == "__main__":
    main()
