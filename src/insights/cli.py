#!/usr/bin/env python3
"""
Command Line Interface for Studio Insights

Prints the insights report for a user, checks the database connection or
serves the HTTP API.
"""

import argparse
import json
import sys
from typing import Any, Dict, Optional

from database import RecordStore
from database.utils import test_connection

from .config import get_settings
from .errors import AccessDeniedError, ConfigurationError, NotAuthenticatedError
from .scope import Caller
from .service import InsightsService, create_store

EXIT_OK = 0
EXIT_DENIED = 1
EXIT_CONFIG = 2


def print_report(report: Dict[str, Any]) -> None:
    """Print a human-readable summary of an insights report"""
    trends = report["operationalTrends"]
    hotspots = report["cancellationHotspots"]
    summary = report["summary"]
    date_range = summary["dateRange"]

    print("=" * 60)
    print("📊 STUDIO INSIGHTS")
    print("=" * 60)
    print(f"  Window: {date_range['start']} → {date_range['end']} ({date_range['days']} days)")

    print(f"\n📋 Summary (all time):")
    print(f"  Total Classes: {summary['totalClasses']:,}")
    print(f"  Cancelled Classes: {summary['cancelledClasses']:,}")
    print(f"  Total Enrollments: {summary['totalEnrollments']:,}")
    print(f"  Cancelled Enrollments: {summary['cancelledEnrollments']:,}")
    print(f"  Cancellation Rate: {summary['overallCancellationRate']:.1f}%")

    print(f"\n📈 Trends (window):")
    print(f"  Avg Attendance: {trends['attendance']['averageRate']:.1f}%")
    enrollment = trends["enrollment"]
    print(f"  Enrollments: {enrollment['total']:,} ({enrollment['active']:,} active, {enrollment['cancelled']:,} cancelled)")
    revenue = trends["revenue"]
    print(f"  Revenue: ${revenue['total']:,.2f} (avg ${revenue['averageDaily']:,.2f}/day)")
    print(f"  Avg Occupancy: {trends['classUtilization']['averageOccupancy']:.1f}%")

    if trends["trainerPerformance"]:
        print(f"\n🏋️  Trainers:")
        for trainer in trends["trainerPerformance"]:
            print(f"  {trainer['name']}:")
            print(f"    Classes: {trainer['classes']:,} | Cancelled: {trainer['cancellationRate']:.1f}%")
            print(f"    Attendance: {trainer['attendanceRate']:.1f}% ({trainer['attendance']}/{trainer['totalAttendance']})")

    if hotspots["byTimeOfDay"]:
        print(f"\n⏰ Cancellations by Hour:")
        for row in hotspots["byTimeOfDay"]:
            print(f"  {row['hour']:>5}: {row['cancelled']}/{row['total']} ({row['cancellationRate']:.1f}%)")

    if hotspots["byClient"]:
        print(f"\n👤 Top Cancelling Clients:")
        for row in hotspots["byClient"]:
            print(f"  {row['clientId']}: {row['cancellations']}")

    messages = report["insights"]
    print(f"\n💡 Insights:")
    for message in messages["insights"]:
        print(f"  • {message}")
    for message in messages["warnings"]:
        print(f"  ⚠️  {message}")
    for message in messages["recommendations"]:
        print(f"  → {message}")
    if not any(messages.values()):
        print("  Nothing to report")


def run_report(
    user_id: Optional[str],
    days: Any = None,
    role: Optional[str] = None,
    as_json: bool = False,
    store: Optional[RecordStore] = None,
) -> int:
    """
    Compute and print the report for one user.

    Args:
        user_id: Caller user id
        days: Lookback window
        role: Role override (looked up in user_roles when omitted)
        as_json: Print raw JSON instead of the summary
        store: Record store (defaults to the Postgres store)

    Returns:
        Process exit code
    """
    settings = get_settings()
    try:
        store = store or create_store(settings)
        report = InsightsService(store, settings).get_insights(Caller(user_id=user_id, role=role), days)
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        return EXIT_CONFIG
    except (NotAuthenticatedError, AccessDeniedError) as e:
        print(f"❌ {e}")
        return EXIT_DENIED

    if as_json:
        print(json.dumps(report, indent=2))
    else:
        print_report(report)
    return EXIT_OK


def serve(host: str, port: int) -> None:
    import uvicorn

    from .api import create_app

    uvicorn.run(create_app(), host=host, port=port)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Studio Insights CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  studio-insights --user-id 42                 # Last 30 days for user 42
  studio-insights --user-id 42 --days 90       # Last 90 days
  studio-insights --user-id 42 --json          # Raw JSON report
  studio-insights --check-db                   # Test the database connection
  studio-insights --serve --port 8000          # Serve GET /insights
        """
    )

    parser.add_argument(
        "--user-id",
        help="User to compute insights for"
    )

    parser.add_argument(
        "--role",
        choices=["admin", "trainer"],
        help="Role override (default: looked up in user_roles)"
    )

    parser.add_argument(
        "--days",
        default=None,
        help="Lookback window in days (default 30, clamped to 1-365)"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON"
    )

    parser.add_argument(
        "--check-db",
        action="store_true",
        help="Test the database connection and exit"
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the HTTP API with uvicorn"
    )

    parser.add_argument("--host", default="127.0.0.1", help="Host to bind with --serve")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind with --serve")

    args = parser.parse_args(argv)

    if args.check_db:
        ok = test_connection(get_settings().database_url)
        sys.exit(EXIT_OK if ok else EXIT_CONFIG)

    if args.serve:
        serve(args.host, args.port)
        return

    # Validate arguments
    if not args.user_id:
        parser.error("Must specify --user-id (or --check-db / --serve)")
        return

    sys.exit(run_report(args.user_id, days=args.days, role=args.role, as_json=args.json))


if __name__ == "__main__":
    main()
