#!/usr/bin/env python3
"""
Direct script to run the CabDispatch booking store in the foreground.
"""

import os
import sys

from cabdispatch.store_server import main

if __name__ == '__main__':
    port = int(os.getenv("CABDISPATCH_PORT", "3000"))
    print(f"Starting booking store on port {port}...")
    try:
        main(port)
    except OSError as e:
        print(f"Error running booking store: {e}", file=sys.stderr)
        sys.exit(1)
