import pytest

from cadence.domain.models import UserProgress
from factories import NOW, make_card, make_problem


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def diverse_catalog():
    """30 problems over 3 units x 3 topics, every third needs a calculator."""
    problems = []
    for i in range(30):
        unit = f"unit-{i % 3 + 1}"
        topic = f"{unit}-topic-{(i // 3) % 3}"
        problems.append(
            make_problem(
                f"p{i:03d}",
                unit=unit,
                topic=topic,
                calculator_required=i % 3 == 0,
                estimated_time_seconds=90,
            )
        )
    return problems


@pytest.fixture
def overdue_progress(diverse_catalog):
    """Every catalog problem overdue by a different amount."""
    cards = [
        make_card(problem.id, due_in_days=-(i % 7) - 0.5)
        for i, problem in enumerate(diverse_catalog)
    ]
    return UserProgress(cards=cards)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    return home
