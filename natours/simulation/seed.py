from __future__ import annotations

from datetime import datetime, timezone

from natours.models.tour import Tour
from natours.models.user import User
from natours.utils.base import Difficulty, Role
from natours.utils.logging import get_logger

logger = get_logger(__name__)

USER_FIXTURES = [
    ("Alice Example", "alice@natours.io", "Secret123!", Role.ADMIN.value),
    ("Bob Example", "bob@natours.io", "Secret123!", Role.LEAD_GUIDE.value),
    ("Carol Example", "carol@natours.io", "Secret123!", Role.USER.value),
]

TOUR_FIXTURES = [
    {
        "name": "The Forest Hiker",
        "duration": 5,
        "max_group_size": 25,
        "difficulty": Difficulty.EASY.value,
        "ratings_average": 4.7,
        "ratings_quantity": 37,
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "start_dates": [datetime(2021, 4, 25, 9, tzinfo=timezone.utc), datetime(2021, 7, 20, 9, tzinfo=timezone.utc)],
    },
    {
        "name": "The Sea Explorer",
        "duration": 7,
        "max_group_size": 15,
        "difficulty": Difficulty.MEDIUM.value,
        "ratings_average": 4.8,
        "ratings_quantity": 23,
        "price": 497,
        "price_discount": 397,
        "summary": "Exploring the jaw-dropping US east coast by foot and by boat",
        "start_dates": [datetime(2021, 6, 19, 9, tzinfo=timezone.utc), datetime(2021, 7, 20, 9, tzinfo=timezone.utc)],
    },
    {
        "name": "The Snow Adventurer",
        "duration": 4,
        "max_group_size": 10,
        "difficulty": Difficulty.DIFFICULT.value,
        "ratings_average": 4.5,
        "ratings_quantity": 13,
        "price": 997,
        "summary": "Exciting adventure in the snow with snowboarding and skiing",
        "start_dates": [datetime(2022, 1, 5, 10, tzinfo=timezone.utc)],
    },
    {
        "name": "The Secret Summit",
        "duration": 3,
        "max_group_size": 4,
        "difficulty": Difficulty.DIFFICULT.value,
        "ratings_average": 5.0,
        "ratings_quantity": 2,
        "price": 2997,
        "summary": "Invitation-only climb, hidden from the public catalogue",
        "start_dates": [datetime(2021, 7, 1, 6, tzinfo=timezone.utc)],
        "secret_tour": True,
    },
]


def ensure_users() -> list[User]:
    users: list[User] = []
    for name, email, pwd, role in USER_FIXTURES:
        user = User.objects(email=email).first()
        if not user:
            user = User(name=name, email=email, role=role, password=pwd, password_confirm=pwd)
            user.save()
        users.append(user)
    return users


def ensure_tours() -> list[Tour]:
    tours: list[Tour] = []
    visible_or_not = Tour.objects.with_secret()
    for fixture in TOUR_FIXTURES:
        tour = visible_or_not(name=fixture["name"]).first()
        if not tour:
            tour = Tour(**fixture)
            tour.save()
        tours.append(tour)
    return tours


def clear_data() -> None:
    Tour.objects.with_secret().delete()
    User.objects.delete()


def seed() -> tuple[list[User], list[Tour]]:
    users = ensure_users()
    tours = ensure_tours()
    logger.info("Seeded %d users and %d tours", len(users), len(tours))
    return users, tours
