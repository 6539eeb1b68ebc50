#!/usr/bin/env python3
"""
Seed reference tables: trades, product_groups, trade_mapping_rules.

Upserts the built-in catalogs so the database matches the classifier.
Tier-1 rules are only inserted when the table has none, so rules edited by
hand are never overwritten (use --replace-rules to reset them).

Usage:
    python3 scripts/seed_trades.py
    python3 scripts/seed_trades.py --dry-run
    python3 scripts/seed_trades.py --replace-rules
"""

import argparse
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

import psycopg2
from psycopg2.extras import execute_values

from services.classification import default_reference_tables

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


def get_db_connection():
    """Get PostgreSQL connection from DATABASE_URL."""
    url = os.environ.get('DATABASE_URL')
    if not url:
        raise ValueError("DATABASE_URL environment variable not set")
    return psycopg2.connect(url)


def seed_trades(cur, tables) -> int:
    rows = [(t.id, t.slug, t.name, t.icon, t.color, t.sort_order) for t in tables.trades]
    execute_values(cur, """
        INSERT INTO trades (id, slug, name, icon, color, sort_order)
        VALUES %s
        ON CONFLICT (id) DO UPDATE SET
            slug = EXCLUDED.slug,
            name = EXCLUDED.name,
            icon = EXCLUDED.icon,
            color = EXCLUDED.color,
            sort_order = EXCLUDED.sort_order
    """, rows, page_size=500)
    return len(rows)


def seed_product_groups(cur, tables) -> int:
    rows = [(p.id, p.slug, p.name, p.sort_order) for p in tables.product_groups]
    execute_values(cur, """
        INSERT INTO product_groups (id, slug, name, sort_order)
        VALUES %s
        ON CONFLICT (id) DO UPDATE SET
            slug = EXCLUDED.slug,
            name = EXCLUDED.name,
            sort_order = EXCLUDED.sort_order
    """, rows, page_size=500)
    return len(rows)


def seed_rules(cur, tables, replace: bool = False) -> int:
    if replace:
        cur.execute("DELETE FROM trade_mapping_rules WHERE tier = 1")
    else:
        cur.execute("SELECT COUNT(*) FROM trade_mapping_rules WHERE tier = 1")
        existing = cur.fetchone()[0]
        if existing:
            logger.info(f"trade_mapping_rules already has {existing} tier-1 rules, leaving them")
            return 0

    rows = [
        (r.trade_id, r.tier, r.match_field, r.match_pattern, r.confidence,
         r.phase_start, r.phase_end, r.is_active)
        for r in tables.tier1_rules
    ]
    execute_values(cur, """
        INSERT INTO trade_mapping_rules (
            trade_id, tier, match_field, match_pattern, confidence,
            phase_start, phase_end, is_active
        ) VALUES %s
    """, rows, page_size=500)
    return len(rows)


def main():
    parser = argparse.ArgumentParser(description='Seed trade and product reference tables')
    parser.add_argument('--dry-run', action='store_true', help='Preview without changes')
    parser.add_argument('--replace-rules', action='store_true',
                        help='Replace existing tier-1 rules with the built-ins')
    args = parser.parse_args()

    tables = default_reference_tables()

    print("=== SEED REFERENCE TABLES ===")
    print(f"  Trades:         {len(tables.trades)}")
    print(f"  Product groups: {len(tables.product_groups)}")
    print(f"  Tier-1 rules:   {len(tables.tier1_rules)}")
    if args.dry_run:
        print("\nDRY RUN COMPLETE - No changes made")
        return 0

    try:
        conn = get_db_connection()
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    try:
        with conn.cursor() as cur:
            trades = seed_trades(cur, tables)
            products = seed_product_groups(cur, tables)
            rules = seed_rules(cur, tables, replace=args.replace_rules)
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        logger.error(f"Seeding failed, rolled back: {e}")
        return 1
    finally:
        conn.close()

    print(f"\n  ✓ {trades} trades")
    print(f"  ✓ {products} product groups")
    print(f"  ✓ {rules} tier-1 rules")
    return 0


if __name__ == "__main__":
    exit(main())
