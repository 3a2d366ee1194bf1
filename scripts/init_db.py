#!/usr/bin/env python3
"""
One-shot helper: create tables without starting the server.
"""
import asyncio

from momentum.db import create_db_and_tables

if __name__ == "__main__":
    asyncio.run(create_db_and_tables())
    print("Momentum tables created.")
