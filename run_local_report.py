#!/usr/bin/env python3
"""
Local Report Script
Builds a workshop analytics report locally, straight from the record store.
"""

import asyncio
import os
import sys
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.analytics import AnalyticsEngine, PeriodContext
from app.services.record_store import get_record_store, load_snapshot


def main():
    print("=" * 60)
    print("LOCAL ANALYTICS REPORT")
    print("=" * 60)

    workshop_id = os.getenv("DEFAULT_WORKSHOP_ID")
    if not workshop_id:
        print("ERROR: DEFAULT_WORKSHOP_ID is not set")
        return

    days = int(os.getenv("DEFAULT_PERIOD_DAYS", "30"))
    context = PeriodContext.last_days(days)
    period = context.describe()

    print(f"\nWorkshop ID: {workshop_id}")
    print(f"Date range: {period['start']} to {period['end']}")

    # Step 1: Load snapshot
    print("\n" + "-" * 40)
    print("STEP 1: Loading workshop records...")
    print("-" * 40)

    snapshot = asyncio.run(load_snapshot(get_record_store(), workshop_id))
    print(f"Jobs: {len(snapshot.jobs)}  Invoices: {len(snapshot.invoices)}  "
          f"Inventory: {len(snapshot.inventory)}  Technicians: {len(snapshot.technicians)}")

    # Step 2: Compute report
    print("\n" + "-" * 40)
    print("STEP 2: Computing report...")
    print("-" * 40)

    report = AnalyticsEngine(snapshot).compute_report(context)

    print(f"Total revenue:     {report.total_revenue:,.2f}")
    print(f"Completed jobs:    {report.completed_count} ({report.target_percentage:.1f}% of all jobs)")
    print(f"Inventory value:   {report.inventory_value:,.2f}")

    print("\nLeaderboard:")
    for standing in report.leaderboard:
        print(f"  {standing.name:<24} revenue={standing.revenue:>12,.2f}  "
              f"completed={standing.completed_jobs}/{standing.total_assigned} "
              f"({standing.completion_rate:.0f}%)")

    print("\nTop issues (volume):  " + ", ".join(f"{i.issue} ({i.count})" for i in report.top_issues_by_volume))
    print("Top issues (revenue): " + ", ".join(f"{i.issue} ({i.revenue:,.0f})" for i in report.top_issues_by_revenue))
    print("Top brands:           " + ", ".join(f"{b.brand} ({b.count})" for b in report.top_brands))
    print("Top parts (qty):      " + ", ".join(f"{p.name} ({p.quantity:g})" for p in report.top_parts_by_quantity))
    print("Top parts (revenue):  " + ", ".join(f"{p.name} ({p.revenue:,.0f})" for p in report.top_parts_by_revenue))

    print("\n" + "=" * 60)
    print("REPORT COMPLETE!")
    print("=" * 60)


if __name__ == "__main__":
    main()
