"""Generate realistic canonical bundles for exercising import and export.

Bundles are deterministic for a given seed and already normalized, so they can
be imported and compared against an export without any field drifting.
"""

import random
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from .. import config
from ..schemas.entities import (
    CategoryData,
    DailyPlanData,
    JournalEntryData,
    ProjectData,
    TaskData,
    WorkScheduleData,
)

COLORS = ['#3B82F6', '#10B981', '#F59E0B', '#EF4444', '#8B5CF6', '#EC4899']

# Share of tasks generated as children of another task
CHILD_TASK_RATIO = 0.3


def _timestamp(day: date) -> str:
    return f"{day.isoformat()}T09:00:00.000Z"


class _SampleBuilder:
    def __init__(self, seed: Optional[int], today: date):
        self.rng = random.Random(seed)
        self.today = today
        self._counter = 0

    def next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter:05d}-{self.rng.randrange(16 ** 6):06x}"

    def past_day(self, max_days: int = 365) -> date:
        return self.today - timedelta(days=self.rng.randrange(max_days))

    def projects(self, count: int) -> List[Dict[str, Any]]:
        return [
            ProjectData(
                id=self.next_id("project"),
                name=f"Project {i + 1}",
                description=f"This is a description for Project {i + 1}",
                color=self.rng.choice(COLORS),
                created_at=_timestamp(self.today),
                updated_at=_timestamp(self.today),
            ).to_record()
            for i in range(count)
        ]

    def categories(self, count: int) -> List[Dict[str, Any]]:
        return [
            CategoryData(
                id=self.next_id("category"),
                name=f"Category {i + 1}",
                color=self.rng.choice(COLORS),
                created_at=_timestamp(self.today),
                updated_at=_timestamp(self.today),
            ).to_record()
            for i in range(count)
        ]

    def task(self, project_ids: List[str], category_ids: List[str]) -> Dict[str, Any]:
        task_id = self.next_id("task")
        categories = []
        if category_ids and self.rng.random() > 0.3:
            categories = list(dict.fromkeys(self.rng.choice(category_ids) for _ in range(self.rng.randrange(3))))
        return TaskData(
            id=task_id,
            title=f"Test Task {task_id[-6:]}",
            description=f"This is a test task description for {task_id}",
            completed=self.rng.random() > 0.7,
            archived=self.rng.random() > 0.9,
            due_date=self.past_day() if self.rng.random() > 0.5 else None,
            project_id=self.rng.choice(project_ids) if project_ids and self.rng.random() > 0.3 else None,
            category_ids=categories,
            priority=self.rng.choice(["low", "medium", "high", None]),
            estimated_minutes=self.rng.choice([15, 30, 60, None]),
            created_at=_timestamp(self.today),
            updated_at=_timestamp(self.today),
        ).to_record()

    def tasks(self, count: int, project_ids: List[str], category_ids: List[str]) -> List[Dict[str, Any]]:
        parent_count = count - int(count * CHILD_TASK_RATIO)
        tasks = [self.task(project_ids, category_ids) for _ in range(parent_count)]
        for _ in range(count - parent_count):
            parent = tasks[self.rng.randrange(parent_count)]
            child = self.task(project_ids, category_ids)
            child["parentTaskId"] = parent["id"]
            parent["subtasks"].append(child["id"])
            tasks.append(child)
        return tasks

    def daily_plans(self, count: int, task_ids: List[str]) -> List[Dict[str, Any]]:
        plans = []
        for i in range(count):
            day = (self.today - timedelta(days=i)).isoformat()
            block_count = self.rng.randrange(2, 8)
            blocks = []
            for j in range(block_count):
                start_hour = 8 + (j * 8) // block_count
                end_hour = start_hour + -(-8 // block_count)
                assigned = []
                if task_ids and self.rng.random() > 0.3:
                    assigned = list(dict.fromkeys(
                        self.rng.choice(task_ids) for _ in range(self.rng.randrange(1, 4))
                    ))
                blocks.append({
                    "id": self.next_id("block"),
                    "title": f"Block {j + 1}",
                    "startTime": f"{start_hour:02d}:00",
                    "endTime": f"{end_hour:02d}:00",
                    "taskIds": assigned,
                })
            plans.append(DailyPlanData.model_validate({"id": day, "date": day, "timeBlocks": blocks}).to_record())
        return plans

    def work_schedule(self, days: int = 30) -> Dict[str, Any]:
        shifts = []
        for i in range(days):
            if self.rng.random() > 0.3:
                shifts.append({
                    "id": self.next_id("shift"),
                    "date": (self.today - timedelta(days=i)).isoformat(),
                    "startTime": "09:00",
                    "endTime": "17:00",
                    "notes": "Weekend cover" if i % 7 in (5, 6) else None,
                })
        return WorkScheduleData.model_validate({
            "id": self.next_id("schedule"),
            "name": "My Work Schedule",
            "shifts": shifts,
            "createdAt": _timestamp(self.today),
            "updatedAt": _timestamp(self.today),
        }).to_record()

    def journal_entries(self, weeks: int) -> List[Dict[str, Any]]:
        entries = []
        for i in range(weeks):
            day = self.today - timedelta(weeks=i)
            iso_year, iso_week, _ = day.isocalendar()
            entries.append(JournalEntryData(
                id=self.next_id("journal"),
                date=day.isoformat(),
                content=f"Weekly review notes for week {iso_week}",
                review_section_id=self.rng.choice(["reflect", "overdue", "upcoming", None]),
                week_number=iso_week,
                week_year=iso_year,
                is_completed=self.rng.random() > 0.5,
                created_at=_timestamp(day),
                updated_at=_timestamp(day),
            ).to_record())
        return entries


def generate_sample_bundle(
    task_count: int = 100,
    project_count: int = 5,
    category_count: int = 8,
    plan_count: int = 14,
    journal_weeks: int = 4,
    seed: Optional[int] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Build a canonical bundle with consistent parent/subtask links.

    Args:
        task_count: Total tasks, about a third of them subtasks
        project_count: Number of projects
        category_count: Number of categories
        plan_count: Number of consecutive daily plans ending today
        journal_weeks: Number of weekly journal entries
        seed: Random seed for reproducible bundles
        today: Reference date (defaults to the current date)

    Returns:
        Bundle dict ready for ``json.dumps``
    """
    builder = _SampleBuilder(seed, today or date.today())
    projects = builder.projects(project_count)
    categories = builder.categories(category_count)
    tasks = builder.tasks(task_count, [p["id"] for p in projects], [c["id"] for c in categories])
    return {
        "tasks": tasks,
        "projects": projects,
        "categories": categories,
        "dailyPlans": builder.daily_plans(plan_count, [t["id"] for t in tasks]),
        "workSchedule": builder.work_schedule(),
        "journalEntries": builder.journal_entries(journal_weeks),
        "exportDate": _timestamp(builder.today),
        "version": config.EXPORT_VERSION,
    }
