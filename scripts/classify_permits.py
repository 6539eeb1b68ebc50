#!/usr/bin/env python3
"""
Classify Permits - scope tags, trades, products and lead scores.

Two passes over the permits table:
1. Classification: project type + scope tags per permit, then trade matches
   (with phase and lead score) and product matches. Each page is written in
   one transaction; permit_trades / permit_products rows are replaced.
2. Propagation: BLD permits hand their scope to coded companion permits
   (PLB, HVA, DRN, ...) that share the same base permit number.

Every output is recomputed from scratch, so re-running is always safe. A
page that fails to save is rolled back, logged and left for the next run.

Usage:
    python3 scripts/classify_permits.py                       # Full run
    python3 scripts/classify_permits.py --limit 5000          # First 5000 permits
    python3 scripts/classify_permits.py --dry-run             # Classify, don't write
    python3 scripts/classify_permits.py --workers 4           # Parallel classification
    python3 scripts/classify_permits.py --propagation-only    # Only BLD -> companion pass
    python3 scripts/classify_permits.py --rules-file rules.json
"""

import argparse
import itertools
import logging
import os
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from functools import partial
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from dotenv import load_dotenv
load_dotenv()

# Add parent to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

import psycopg2
import psycopg2.extensions
from psycopg2.extras import RealDictCursor, execute_values
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from services.classification import (
    Permit,
    ProductMatch,
    PropagatedScope,
    ReferenceTables,
    ScopeResult,
    TradeMappingRule,
    TradeMatch,
    classify,
    classify_products,
    classify_trades,
    load_reference_tables,
)
from services.classification.labels import PROJECT_TYPE_LABELS, format_scope_tag
from services.classification.propagation import iter_sibling_groups, propagate_group

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000

PERMIT_COLUMNS = [
    'permit_num', 'revision_num', 'permit_type', 'work', 'description', 'structure_type',
    'current_use', 'proposed_use', 'storeys', 'est_const_cost', 'status', 'issued_date',
    'housing_units',
]

PROPAGATION_COLUMNS = ['permit_num', 'revision_num', 'permit_type', 'project_type', 'scope_tags']

# Coded sub-permits only ("21 123456 PLB 00"), same token rule as extract_permit_code
CODE_TOKEN_SQL_RE = r'\s[A-Z]{2,4}(\s|$)'


# =============================================================================
# DATABASE
# =============================================================================

def get_db_connection():
    """Get PostgreSQL connection from DATABASE_URL."""
    url = os.environ.get('DATABASE_URL')
    if not url:
        raise ValueError("DATABASE_URL environment variable not set")
    return psycopg2.connect(url)


def load_db_rules(conn) -> List[TradeMappingRule]:
    """Active tier-1 rules from trade_mapping_rules (empty if the table is missing)."""
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute("""
                SELECT trade_id, tier, match_field, match_pattern, confidence,
                       phase_start, phase_end, is_active
                FROM trade_mapping_rules
                WHERE is_active = true AND tier = 1
            """)
            rows = cur.fetchall()
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        logger.warning(f"Could not load trade_mapping_rules, using built-in rules: {e}")
        return []
    return [TradeMappingRule.from_row(row) for row in rows]


def fetch_permit_page(
    conn,
    after: Tuple[str, str],
    batch_size: int,
    columns: List[str] = PERMIT_COLUMNS,
    code_only: bool = False,
) -> List[dict]:
    """
    Next page of permits strictly after the (permit_num, revision_num) cursor.

    Keys compare in "C" collation so siblings sharing a base number stay
    contiguous and the cursor is strictly increasing.
    """
    where = ['(permit_num COLLATE "C", revision_num COLLATE "C") > (%s, %s)']
    params: list = list(after)
    if code_only:
        where.append('permit_num ~ %s')
        params.append(CODE_TOKEN_SQL_RE)
    params.append(batch_size)

    query = f"""
        SELECT {', '.join(columns)}
        FROM permits
        WHERE {' AND '.join(where)}
        ORDER BY permit_num COLLATE "C", revision_num COLLATE "C"
        LIMIT %s
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cur:
        cur.execute(query, params)
        rows = cur.fetchall()
    conn.commit()
    return rows


def iter_permit_pages(
    conn,
    batch_size: int,
    limit: Optional[int] = None,
    columns: List[str] = PERMIT_COLUMNS,
    code_only: bool = False,
) -> Iterator[List[Permit]]:
    """Yield pages of Permits; the cursor advances past every fetched page."""
    after = ('', '')
    seen = 0
    while limit is None or seen < limit:
        size = batch_size if limit is None else min(batch_size, limit - seen)
        rows = fetch_permit_page(conn, after, size, columns, code_only)
        if not rows:
            return
        after = (rows[-1]['permit_num'], rows[-1]['revision_num'])
        seen += len(rows)
        yield [Permit.from_row(row) for row in rows]


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(psycopg2.extensions.TransactionRollbackError),
    reraise=True
)
def save_classifications(conn, results: List['PermitClassification']):
    """Write one page of results in a single transaction."""
    keys = [r.permit.key for r in results]
    scope_rows = [
        (r.permit.permit_num, r.permit.revision_num, r.scope.project_type, r.scope.scope_tags,
         'classified')
        for r in results
    ]
    trade_rows = [
        (m.permit_num, m.revision_num, m.trade_id, m.trade_slug, m.trade_name, m.tier,
         m.confidence, m.is_active, m.phase, m.lead_score)
        for r in results for m in r.trades
    ]
    product_rows = [
        (p.permit_num, p.revision_num, p.product_id, p.product_slug, p.product_name,
         p.confidence)
        for r in results for p in r.products
    ]

    try:
        with conn.cursor() as cur:
            execute_values(cur, """
                UPDATE permits AS p
                SET project_type = v.project_type,
                    scope_tags = v.scope_tags,
                    scope_classified_at = NOW(),
                    scope_source = v.scope_source
                FROM (VALUES %s) AS v(permit_num, revision_num, project_type, scope_tags,
                                      scope_source)
                WHERE p.permit_num = v.permit_num AND p.revision_num = v.revision_num
            """, scope_rows, template='(%s, %s, %s, %s::text[], %s)', page_size=500)

            for table in ('permit_trades', 'permit_products'):
                execute_values(cur, f"""
                    DELETE FROM {table} AS t
                    USING (VALUES %s) AS v(permit_num, revision_num)
                    WHERE t.permit_num = v.permit_num AND t.revision_num = v.revision_num
                """, keys, page_size=500)

            if trade_rows:
                execute_values(cur, """
                    INSERT INTO permit_trades (
                        permit_num, revision_num, trade_id, trade_slug, trade_name,
                        tier, confidence, is_active, phase, lead_score
                    ) VALUES %s
                """, trade_rows, page_size=500)

            if product_rows:
                execute_values(cur, """
                    INSERT INTO permit_products (
                        permit_num, revision_num, product_id, product_slug, product_name,
                        confidence
                    ) VALUES %s
                """, product_rows, page_size=500)
        conn.commit()
    except psycopg2.Error:
        conn.rollback()
        raise


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(psycopg2.extensions.TransactionRollbackError),
    reraise=True
)
def save_propagated(conn, updates: List[PropagatedScope]):
    rows = [
        (u.permit_num, u.revision_num, u.project_type, u.scope_tags, u.scope_source)
        for u in updates
    ]
    try:
        with conn.cursor() as cur:
            execute_values(cur, """
                UPDATE permits AS p
                SET project_type = v.project_type,
                    scope_tags = v.scope_tags,
                    scope_classified_at = NOW(),
                    scope_source = v.scope_source
                FROM (VALUES %s) AS v(permit_num, revision_num, project_type, scope_tags,
                                      scope_source)
                WHERE p.permit_num = v.permit_num AND p.revision_num = v.revision_num
            """, rows, template='(%s, %s, %s, %s::text[], %s)', page_size=500)
        conn.commit()
    except psycopg2.Error:
        conn.rollback()
        raise


# =============================================================================
# CLASSIFICATION PASS
# =============================================================================

@dataclass
class PermitClassification:
    permit: Permit
    scope: ScopeResult
    trades: List[TradeMatch] = field(default_factory=list)
    products: List[ProductMatch] = field(default_factory=list)


def classify_permit(
    permit: Permit, tables: ReferenceTables, today: Optional[date] = None
) -> PermitClassification:
    scope = classify(permit, tables)
    return PermitClassification(
        permit=permit,
        scope=scope,
        trades=classify_trades(permit, scope.scope_tags, tables, today),
        products=classify_products(permit, scope.scope_tags, tables),
    )


def classify_page(
    permits: List[Permit],
    tables: ReferenceTables,
    today: Optional[date] = None,
    workers: int = 1,
) -> List[PermitClassification]:
    """Classify a page, optionally on a thread pool. Output order matches input."""
    work = partial(classify_permit, tables=tables, today=today)
    if workers <= 1:
        return [work(p) for p in permits]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(work, permits))


def new_stats() -> Dict:
    return {
        'permits': 0,
        'classified': 0,
        'failed_pages': 0,
        'failed_permits': 0,
        'trade_matches': 0,
        'product_matches': 0,
        'propagated': 0,
        'propagation_failed': 0,
        'project_types': Counter(),
        'tags': Counter(),
    }


def run_classification(
    conn,
    tables: ReferenceTables,
    stats: Dict,
    batch_size: int = DEFAULT_BATCH_SIZE,
    limit: Optional[int] = None,
    dry_run: bool = False,
    workers: int = 1,
    today: Optional[date] = None,
) -> Dict:
    for page_num, permits in enumerate(iter_permit_pages(conn, batch_size, limit), 1):
        results = classify_page(permits, tables, today, workers)
        stats['permits'] += len(permits)

        if not dry_run:
            try:
                save_classifications(conn, results)
            except psycopg2.Error as e:
                stats['failed_pages'] += 1
                stats['failed_permits'] += len(permits)
                logger.error(
                    f"Page {page_num} ({permits[0].permit_num} .. {permits[-1].permit_num}) "
                    f"not saved, skipping: {e}"
                )
                continue

        stats['classified'] += len(results)
        for r in results:
            stats['trade_matches'] += len(r.trades)
            stats['product_matches'] += len(r.products)
            stats['project_types'][r.scope.project_type] += 1
            stats['tags'].update(r.scope.scope_tags)

        logger.info(f"Page {page_num}: {stats['classified']} classified, "
                    f"{stats['failed_pages']} failed pages")
    return stats


# =============================================================================
# PROPAGATION PASS
# =============================================================================

def run_propagation(
    conn,
    stats: Dict,
    batch_size: int = DEFAULT_BATCH_SIZE,
    dry_run: bool = False,
) -> Dict:
    """Copy BLD scope onto companions, one base-number group at a time."""
    pages = iter_permit_pages(conn, batch_size, columns=PROPAGATION_COLUMNS, code_only=True)
    pending: List[PropagatedScope] = []

    def flush():
        batch = list(pending)
        pending.clear()
        if not batch:
            return
        if not dry_run:
            try:
                save_propagated(conn, batch)
            except psycopg2.Error as e:
                stats['propagation_failed'] += len(batch)
                logger.error(f"Propagation batch of {len(batch)} not saved, skipping: {e}")
                return
        stats['propagated'] += len(batch)

    for _, siblings in iter_sibling_groups(itertools.chain.from_iterable(pages)):
        pending.extend(propagate_group(siblings))
        if len(pending) >= batch_size:
            flush()
    flush()

    logger.info(f"Propagation: {stats['propagated']} companion permits updated")
    return stats


# =============================================================================
# MAIN
# =============================================================================

def print_stats(stats: Dict, dry_run: bool = False, top_tags: int = 15):
    classified = max(stats['classified'], 1)
    print(f"\n{'=' * 50}")
    print("DRY RUN COMPLETE - No changes made" if dry_run else "CLASSIFICATION COMPLETE")
    print(f"  Permits read:        {stats['permits']}")
    print(f"  Classified:          {stats['classified']}")
    print(f"  Failed pages:        {stats['failed_pages']} ({stats['failed_permits']} permits)")
    print(f"  Trade matches:       {stats['trade_matches']}")
    print(f"  Product matches:     {stats['product_matches']}")
    print(f"  Avg trades/permit:   {stats['trade_matches'] / classified:.1f}")
    print(f"  Avg products/permit: {stats['product_matches'] / classified:.1f}")
    print(f"  Propagated:          {stats['propagated']}")
    if stats['propagation_failed']:
        print(f"  Propagation failed:  {stats['propagation_failed']}")

    if stats['project_types']:
        print("\nProject types:")
        for project_type, count in stats['project_types'].most_common():
            label = PROJECT_TYPE_LABELS.get(project_type, project_type)
            print(f"  {label:<20} {count:>8} ({count / classified * 100:.1f}%)")

    if stats['tags']:
        print(f"\nTop {top_tags} scope tags:")
        for tag, count in stats['tags'].most_common(top_tags):
            print(f"  {format_scope_tag(tag):<30} {count:>8}")


def main():
    parser = argparse.ArgumentParser(description='Classify permit scope, trades and lead scores')
    parser.add_argument('--batch-size', type=int, default=DEFAULT_BATCH_SIZE,
                        help='Permits per page')
    parser.add_argument('--limit', type=int, help='Max permits to classify')
    parser.add_argument('--dry-run', action='store_true', help='Classify without writing')
    parser.add_argument('--workers', type=int, default=1,
                        help='Threads for per-permit classification')
    parser.add_argument('--skip-propagation', action='store_true',
                        help='Skip the BLD -> companion pass')
    parser.add_argument('--propagation-only', action='store_true',
                        help='Only run the BLD -> companion pass')
    parser.add_argument('--rules-file', default=os.environ.get('CLASSIFICATION_RULES_FILE'),
                        help='JSON overrides for rule tables')
    parser.add_argument('--builtin-rules', action='store_true',
                        help='Ignore trade_mapping_rules in the database')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    print("=== CLASSIFY PERMITS ===")
    if args.dry_run:
        print("Mode: DRY RUN\n")

    try:
        conn = get_db_connection()
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    try:
        db_rules = [] if args.builtin_rules else load_db_rules(conn)
        tables = load_reference_tables(args.rules_file, db_rules)
        rule_source = 'database' if db_rules else 'built-in'
        print(f"Reference tables: {len(tables.trades)} trades, "
              f"{len(tables.active_tier1_rules())} tier-1 rules ({rule_source})")
    except ValueError as e:
        print(f"ERROR: {e}")
        conn.close()
        return 1

    stats = new_stats()
    try:
        if not args.propagation_only:
            print("Classifying permits...")
            run_classification(
                conn, tables, stats,
                batch_size=args.batch_size,
                limit=args.limit,
                dry_run=args.dry_run,
                workers=args.workers,
            )
        if not args.skip_propagation:
            print("Propagating BLD scope to companion permits...")
            run_propagation(conn, stats, batch_size=args.batch_size, dry_run=args.dry_run)
    except psycopg2.Error as e:
        logger.error(f"Database error, aborting run: {e}")
        print_stats(stats, args.dry_run)
        return 1
    finally:
        conn.close()

    print_stats(stats, args.dry_run)
    return 0


if __name__ == "__main__":
    exit(main())
