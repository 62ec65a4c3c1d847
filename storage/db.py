#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import logging
import sqlite3

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, db_path: str = "focus.db"):
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row

    def init_schema(self):
        cur = self.conn.cursor()

        # --- key/value state (ledger, streak, settings) ---
        cur.execute("""
            CREATE TABLE IF NOT EXISTS app_state (
                key TEXT PRIMARY KEY,
                value TEXT
            );
        """)

        # --- tasks ---
        cur.execute("""
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                completed INTEGER NOT NULL DEFAULT 0,
                created_date TEXT NOT NULL,
                updated_at INTEGER NOT NULL
            );
        """)

        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(completed);"
        )

        self.conn.commit()
        logger.debug("schema ready at %s", self.db_path)

    def close(self):
        try:
            self.conn.close()
        except sqlite3.Error as exc:
            logger.warning("closing %s failed: %s", self.db_path, exc)
