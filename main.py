import sys
import os

# Inject the sitemade-crawler directory into sys.path
# This ensures all sub-packages (crawler, frontier, fingerprint, enrichment) are resolvable.
sys.path.append(os.path.join(os.path.dirname(__file__), "sitemade-crawler"))

from crawler.cli import main

if __name__ == "__main__":
    sys.exit(main())
