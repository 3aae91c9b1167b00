#!/usr/bin/env python3
"""
Main entry point for the graph crawler.
"""

import sys

from graphcrawler.cli import main

if __name__ == '__main__':
    sys.exit(main())
