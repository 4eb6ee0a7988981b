"""
Demo Data Generation Script for the Todo Manager
Generates users, projects, simple and recurring todos with a realistic status mix
"""
import logging
import random
import re
import sys
from datetime import timedelta

from faker import Faker

from todo_manager.config import settings
from todo_manager.database import Database, create_database
from todo_manager.repositories import users as user_repo
from todo_manager.schemas.project import ProjectCreate
from todo_manager.schemas.todo import Priority, RecurringTodoCreate, TodoCreate
from todo_manager.schemas.user import UserCreate
from todo_manager.services import auth as auth_service
from todo_manager.services import projects as project_service
from todo_manager.services import todos as todo_service
from todo_manager.utils import clock

DEMO_PASSWORD = "demo-password"

PROJECT_TEMPLATES = {
    "Website Relaunch": [
        ("Audit existing pages", "List pages to keep, merge or drop"),
        ("Draft new navigation", "Propose a simpler top-level menu"),
        ("Migrate blog posts", "Move posts and fix broken images"),
        ("Set up redirects", "Map old URLs to their new locations"),
    ],
    "Home Renovation": [
        ("Get plumber quotes", "At least three quotes for the bathroom"),
        ("Choose floor tiles", None),
        ("Order kitchen cabinets", "Confirm measurements before ordering"),
    ],
    "Quarterly Report": [
        ("Collect team numbers", "Headcount, spend and delivery metrics"),
        ("Write summary", None),
        ("Review with finance", "Book a 30 minute slot"),
    ],
}

RECURRING_CHORES = [
    ("Water the plants", 3, None),
    ("Weekly team sync notes", 7, 12),
    ("Pay rent", 30, 12),
    ("Back up laptop", 14, None),
]


def create_users(db: Database, fake: Faker, count: int = 3):
    """Create demo users with unique usernames and emails"""
    print(f"👥 Creating {count} demo users...")

    users = []
    used = set()
    while len(users) < count:
        first_name, last_name = fake.first_name(), fake.last_name()
        username = re.sub(r"[^a-z.]", "", f"{first_name}.{last_name}".lower())
        if username in used or user_repo.username_exists(db, username):
            continue
        used.add(username)

        users.append(auth_service.register_user(db, UserCreate(
            username=username,
            email=f"{username}@{fake.domain_name()}",
            password=DEMO_PASSWORD,
            first_name=first_name,
            last_name=last_name,
        )))

    print(f"✅ Created {len(users)} users")
    return users


def create_projects_with_todos(db: Database, users, fake: Faker):
    """Create one project per template, filled with todos in mixed states"""
    print("📁 Creating projects and todos...")

    today = clock.today()
    projects, todos = [], []

    for name, tasks in PROJECT_TEMPLATES.items():
        owner = random.choice(users)
        start = today - timedelta(days=random.randint(5, 30))
        project = project_service.create_project(db, ProjectCreate(
            name=name,
            description=fake.sentence(nb_words=10),
            start_date=start,
            end_date=start + timedelta(days=random.randint(30, 90)),
        ), owner.id)
        projects.append(project)

        for title, description in tasks:
            todo = todo_service.create_todo(db, TodoCreate(
                title=title,
                description=description,
                due_date=today + timedelta(days=random.randint(-10, 20)),
                priority=random.choice(list(Priority)),
                project_id=project.id,
            ), owner.id)

            # Status mix: roughly half open, the rest in progress, done or dropped
            roll = random.random()
            if roll < 0.2:
                todo = todo_service.mark_in_progress(db, todo.id)
            elif roll < 0.4:
                todo = todo_service.mark_completed(db, todo.id)
            elif roll < 0.5:
                todo = todo_service.mark_cancelled(db, todo.id)
            todos.append(todo)

    print(f"✅ Created {len(projects)} projects with {len(todos)} todos")
    return projects, todos


def create_recurring_todos(db: Database, users):
    """Create recurring chores without a project"""
    print("🔁 Creating recurring todos...")

    today = clock.today()
    todos = []
    for title, interval_days, max_occurrences in RECURRING_CHORES:
        todos.append(todo_service.create_todo(db, RecurringTodoCreate(
            title=title,
            due_date=today + timedelta(days=random.randint(0, interval_days)),
            priority=Priority.LOW,
            recurring_interval_days=interval_days,
            max_occurrences=max_occurrences,
        ), random.choice(users).id))

    print(f"✅ Created {len(todos)} recurring todos")
    return todos


def main(url: str | None = None, seed: int | None = None) -> int:
    """Main execution function"""
    logging.basicConfig(level=settings.LOG_LEVEL)

    print("\n" + "=" * 60)
    print("🚀 DEMO DATA GENERATION SCRIPT")
    print("=" * 60 + "\n")

    fake = Faker()
    if seed is not None:
        Faker.seed(seed)
        random.seed(seed)

    db = create_database(url)
    try:
        users = create_users(db, fake)
        projects, todos = create_projects_with_todos(db, users, fake)
        recurring = create_recurring_todos(db, users)

        print("\n" + "=" * 60)
        print("✨ SUCCESS! Database populated with demo data")
        print("=" * 60)
        print(f"\n📊 Summary:")
        print(f"   - Users: {len(users)}")
        print(f"   - Projects: {len(projects)}")
        print(f"   - Todos: {len(todos)}")
        print(f"   - Recurring todos: {len(recurring)}")
        print(f"\n🔑 Demo users sign in with password '{DEMO_PASSWORD}'\n")
        return 0
    except Exception as e:
        print(f"\n❌ ERROR: {e}")
        raise
    finally:
        db.dispose()


if __name__ == "__main__":
    sys.exit(main())
