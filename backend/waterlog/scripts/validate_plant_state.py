#!/usr/bin/env python3
"""
Validation script for stored plant schedules.

Replays every plant's event history through the scheduling engine and
compares the result with the derived state stored on the plant.

Checks:
1. current_interval matches the replayed interval
2. last_watered_at matches the last WATER event
3. next_check_at matches the replayed next check (skipped for plants
   without history, whose next check is "now" at replay time)

Run with --fix to rewrite drifting plants.
"""
import argparse
import sys
from typing import List

from sqlalchemy.orm import Session

from waterlog.database import SessionLocal
from waterlog.models import Plant
from waterlog.services.plant_state import find_drift, recalculate_plant_state
from waterlog.services.scheduling import SchedulingError


def check_plant(db: Session, plant: Plant) -> List[str]:
    """Return a list of human-readable mismatches for one plant (empty if consistent)."""
    try:
        return find_drift(db, plant)
    except SchedulingError as e:
        return [f"cannot replay history: {e}"]


def validate_all(db: Session, fix: bool = False) -> int:
    """Check every plant; returns the number of plants that drifted."""
    drifted = 0
    for plant in db.query(Plant).order_by(Plant.id).all():
        errors = check_plant(db, plant)
        if not errors:
            continue
        drifted += 1
        print(f"✗ Plant {plant.id} ({plant.name})")
        for e in errors:
            print(f"   {e}")
        if fix:
            try:
                recalculate_plant_state(db, plant.id)
                print("   → fixed")
            except SchedulingError as e:
                print(f"   → could not fix: {e}")
    return drifted


def main(argv=None):
    """Run validation for all plants."""
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--fix", action="store_true", help="rewrite plants whose state drifted")
    args = parser.parse_args(argv)

    print("="*60)
    print("Plant Schedule Validation")
    print("="*60)

    db = SessionLocal()
    try:
        drifted = validate_all(db, fix=args.fix)
        print("\n" + "="*60)
        if drifted == 0:
            print("✓ ALL PLANTS CONSISTENT")
        else:
            print(f"✗ {drifted} PLANTS DRIFTED - see details above")
        print("="*60)
    finally:
        db.close()

    sys.exit(0 if drifted == 0 or args.fix else 1)


if __name__ == "__main__":
    main()
