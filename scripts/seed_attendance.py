"""
Demo Data Seeding Script for OJT Tracker
Fills a trainee's weekday attendance over a date range
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
from datetime import date, datetime, time, timedelta


def weekdays(start, end):
    """Dates from start to end inclusive, Saturdays and Sundays skipped"""
    day = start
    while day <= end:
        if day.weekday() < 5:
            yield day
        day += timedelta(days=1)


def seed_attendance(db, user_id, start, end, time_in=time(12, 0), time_out=time(20, 0)):
    """Seed one completed row per weekday; existing days are left alone"""
    created = 0
    skipped = 0

    for day in weekdays(start, end):
        if db.get_attendance(user_id, day):
            print(f"  ⏭️  {day} already exists")
            skipped += 1
            continue

        db.add_attendance(
            user_id,
            time_in_at=datetime.combine(day, time_in),
            time_out_at=datetime.combine(day, time_out),
        )
        print(f"  ✓ {day} ({time_in:%H:%M} - {time_out:%H:%M})")
        created += 1

    return created, skipped


def main(argv=None):
    from config import Config
    from services.db_manager import DBManager
    from services.attendance_service import hours_worked

    parser = argparse.ArgumentParser(description="Seed demo attendance for a trainee")
    parser.add_argument('email')
    parser.add_argument('--from', dest='start', type=date.fromisoformat, required=True)
    parser.add_argument('--to', dest='end', type=date.fromisoformat, required=True)
    parser.add_argument('--time-in', type=time.fromisoformat, default=time(12, 0))
    parser.add_argument('--time-out', type=time.fromisoformat, default=time(20, 0))
    args = parser.parse_args(argv)

    db = DBManager(Config.DATABASE_URL)
    try:
        user = db.get_user_by_email(args.email)
        if not user:
            print(f"❌ No user with email {args.email}")
            sys.exit(1)

        print(f"Seeding attendance for {user['name']} ({user['id']}): {args.start} to {args.end}")
        created, skipped = seed_attendance(db, user['id'], args.start, args.end,
                                           args.time_in, args.time_out)

        per_day = hours_worked(args.time_in, args.time_out)
        print(f"\n✅ Created: {created}  Skipped: {skipped}  Hours added: {created * per_day:g}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
