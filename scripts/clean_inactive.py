# scripts/clean_inactive.py
"""
Removes attendance, topic progress and homework rows of students that were
deactivated and have had no attendance for --days days.

  python -m scripts.clean_inactive --days 365 --dry-run
"""
import argparse
import logging
from datetime import date, timedelta

from sqlalchemy import func

from app import create_app
from extensions import db
from models import Attendance, HomeworkActivity, Student, TopicProgress

log = logging.getLogger("scripts.clean_inactive")

def stale_student_ids(days: int, today: date | None = None) -> list[int]:
    cutoff = (today or date.today()) - timedelta(days=days)
    last_seen = (db.session.query(Attendance.student_id, func.max(Attendance.date).label("last"))
                 .group_by(Attendance.student_id).subquery())
    rows = (db.session.query(Student.id)
            .outerjoin(last_seen, last_seen.c.student_id == Student.id)
            .filter(Student.is_active.is_(False))
            .filter((last_seen.c.last.is_(None)) | (last_seen.c.last < cutoff))
            .all())
    return [sid for (sid,) in rows]

def clean(days: int, dry_run: bool = False, today: date | None = None) -> dict:
    ids = stale_student_ids(days, today)
    counts = {"students": len(ids), "attendance": 0, "topic_progress": 0, "homework": 0}
    if not ids:
        return counts
    for key, model in (("attendance", Attendance), ("topic_progress", TopicProgress),
                       ("homework", HomeworkActivity)):
        q = model.query.filter(model.student_id.in_(ids))
        counts[key] = q.count() if dry_run else q.delete(synchronize_session=False)
    if dry_run:
        db.session.rollback()
    else:
        db.session.commit()
        log.info("cleaned data of %s inactive students: %s", len(ids), counts)
    return counts

def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument("--days", type=int, default=365)
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--config", default=None)
    args = parser.parse_args(argv)

    app = create_app(args.config)
    with app.app_context():
        counts = clean(args.days, dry_run=args.dry_run)
    print(("[dry-run] " if args.dry_run else "") + ", ".join(f"{k}={v}" for k, v in counts.items()))
    return counts

if __name__ == "__main__":
    main()
