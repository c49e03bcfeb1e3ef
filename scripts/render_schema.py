#!/usr/bin/env python3
"""Emit the SQL that creates the organizations and postings tables."""

from __future__ import annotations

import argparse

from jobly.core.schema import render_schema


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit DDL for the jobly database.")
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing postings and organizations tables first",
    )
    args = parser.parse_args()

    print(render_schema(drop_existing=args.drop), end="")


if __name__ == "__main__":
    main()
