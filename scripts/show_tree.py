#!/usr/bin/env python3
"""
Display sponsor tree structure.

Loads a TSV data file (or the database snapshot) and shows the
hierarchy, the ranking by sales volume, or statistics.

Usage:
    python scripts/show_tree.py [--file PATH] [--variant binary] [--max-depth DEPTH]
    python scripts/show_tree.py --ranking
    python scripts/show_tree.py --stats
    python scripts/show_tree.py --member M1
    python scripts/show_tree.py --file mlm_data.tsv --save-db
    python scripts/show_tree.py --from-db --stats
"""

import sys
import os
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config, ConfigurationError
from sponsor_tree.config.policy import TreeVariant, get_tree_variant
from sponsor_tree.errors import MemberNotFound
from sponsor_tree.services.persistence_codec import PersistenceCodec
from sponsor_tree.services.ranking_service import RankingService
from sponsor_tree.services.snapshot_store import SnapshotStore
from sponsor_tree.utils.tree_render import render_tree, member_brief, member_details
from core.db import get_db_session_ctx, setup_database

import logging

logger = logging.getLogger(__name__)


def print_tree(index, max_depth=None):
    """Print ASCII tree followed by one line per member."""
    print("\n" + "=" * 80)
    print("SPONSOR TREE")
    print("=" * 80 + "\n")
    print(render_tree(index, max_depth))
    print("\nBrief details:")
    for member in index.allMembersBreadthFirst():
        print(f"  {member_brief(index, member)}")
    print("\n" + "=" * 80 + "\n")


def print_ranking(index, limit=None):
    """Print members by descending subtree sales volume."""
    ranked = RankingService(index).rankedVolumes()
    if limit:
        ranked = ranked[:limit]

    print("\n" + "=" * 80)
    print("MEMBERS BY SALES VOLUME")
    print("=" * 80 + "\n")
    for position, (member, volume) in enumerate(ranked, start=1):
        print(f"{position:4}. {member.name:24} {member.memberId:12} {volume:14.2f}")
    print("\n" + "=" * 80 + "\n")


def print_statistics(index):
    """Print tree statistics."""
    members = index.members()
    total = len(members)

    print("\n" + "=" * 80)
    print("TREE STATISTICS")
    print("=" * 80 + "\n")

    print(f"Total members:  {total}")
    print(f"Top-level:      {len(index.topLevelMembers())}")
    if total:
        print("\nMembers by status:")
        counts = {}
        for member in members:
            counts[member.status.value] = counts.get(member.status.value, 0) + 1
        for status, count in sorted(counts.items()):
            print(f"  {status:12} {count:4} ({count / total * 100:.1f}%)")

        print(f"\nTotal own sales:  {sum(m.ownSales for m in members):.2f}")
        print(f"Total balances:   {sum(m.balance for m in members):.2f}")

    problems = index.validate()
    print(f"\nIntegrity problems: {len(problems)}")
    for problem in problems[:10]:
        print(f"  - {problem}")

    print("\n" + "=" * 80 + "\n")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Display sponsor tree structure')
    parser.add_argument('--file',
                        help='TSV data file (default: DATA_FILE from config)')
    parser.add_argument('--variant', choices=[v.value for v in TreeVariant],
                        help='Tree variant (default: TREE_VARIANT from config)')
    parser.add_argument('--max-depth', type=int,
                        help='Maximum depth to display')
    parser.add_argument('--ranking', action='store_true',
                        help='Show members ranked by sales volume')
    parser.add_argument('--top', type=int,
                        help='Limit ranking to the first N members')
    parser.add_argument('--stats', action='store_true',
                        help='Show statistics only')
    parser.add_argument('--member',
                        help='Show details of one member')
    parser.add_argument('--from-db', action='store_true',
                        help='Load the tree from the snapshot database instead of the TSV file')
    parser.add_argument('--save-db', action='store_true',
                        help='Save the loaded tree as the database snapshot')
    args = parser.parse_args()

    # Initialize config
    try:
        Config.initialize_from_env()
    except ConfigurationError as e:
        print(f"❌ {e}")
        return 1

    logging.basicConfig(
        level=Config.get(Config.LOG_LEVEL, "WARNING"),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    path = args.file or Config.get(Config.DATA_FILE)
    variant = TreeVariant(args.variant) if args.variant else get_tree_variant()

    if args.from_db:
        setup_database()
        with get_db_session_ctx() as session:
            index = SnapshotStore(session).load(variant)
    else:
        index = PersistenceCodec(variant).loadFromFile(path)
        if index is None:
            print(f"❌ Data file {path} not found!")
            return 1

    if args.save_db:
        setup_database()
        with get_db_session_ctx() as session:
            count = SnapshotStore(session).save(index)
        print(f"✅ Saved {count} members to database snapshot")

    if args.member:
        try:
            print(member_details(index, args.member))
        except MemberNotFound as e:
            print(f"❌ {e}")
            return 1
        return 0

    if args.stats:
        print_statistics(index)
        return 0

    if args.ranking:
        print_ranking(index, args.top)
        return 0

    print_tree(index, args.max_depth)
    print_statistics(index)
    return 0


if __name__ == "__main__":
    sys.exit(main())
