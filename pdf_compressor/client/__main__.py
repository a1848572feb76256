import sys

from pdf_compressor.client.cli import main

if __name__ == "__main__":
    sys.exit(main())
