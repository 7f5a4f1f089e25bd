"""Recalculate every member's tier from their counters and apply pending upgrades."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the project root is on sys.path so ``app`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from app.calculators import tier_calculator
from app.extensions import db
from app.models import Member, MembershipLevelHistory


def recalculate_tiers(dry_run: bool = False, app=None) -> int:
    if app is None:
        app = create_app()

    with app.app_context():
        tiers = tier_calculator()
        changed = 0

        for member in Member.query.order_by(Member.member_id).all():
            check = tiers.should_upgrade(member.counters())
            if not check.should_upgrade:
                continue

            changed += 1
            print(f"Member {member.member_id}: {member.membership_tier} -> {check.new_tier} "
                  f"(+{check.points_earned} points)")
            if dry_run:
                continue

            db.session.add(
                MembershipLevelHistory(
                    member_id=member.member_id,
                    previous_tier=member.membership_tier,
                    new_tier=check.new_tier,
                    points_earned=check.points_earned or 0,
                    reason="Batch tier recalculation",
                )
            )
            member.membership_points = (member.membership_points or 0) + (check.points_earned or 0)
            member.membership_tier = check.new_tier

        if not dry_run:
            db.session.commit()
        print(f"{changed} member(s) {'would change' if dry_run else 'updated'}")
        return changed


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="Report changes without writing them")
    args = parser.parse_args()
    recalculate_tiers(dry_run=args.dry_run)
