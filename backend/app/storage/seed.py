# backend/app/storage/seed.py
"""Sample catalogue loaded by ``Storage.initialize_data``."""
from datetime import date
from typing import List, Optional

from app.schemas import MovieCreate, SeatCreate, SeatType

# (count, prefix, type) per section, in render order
SEAT_LAYOUT = [
    (8, "G", SeatType.GOLD),
    (20, "R", SeatType.RED),
    (36, "B", SeatType.BLUE),
]
SEATS_PER_SHOWTIME = sum(count for count, _, _ in SEAT_LAYOUT)

DEMO_MOVIES = [
    (
        MovieCreate(
            title="Avengers: Endgame",
            genre="Action, Adventure",
            duration_mins=180,
            poster_url="https://images.unsplash.com/photo-1633613286848-e6f43bbafb8d?auto=format&fit=crop&w=800&q=80",
        ),
        ["10:00 AM", "1:10 PM", "4:20 PM", "7:30 PM", "10:40 PM"],
    ),
    (
        MovieCreate(
            title="Dune",
            genre="Sci-Fi, Adventure",
            duration_mins=155,
            poster_url="https://images.unsplash.com/photo-1626814026160-2237a95fc5a0?auto=format&fit=crop&w=800&q=80",
        ),
        ["9:00 AM", "11:45 AM", "2:30 PM", "5:15 PM", "8:00 PM", "10:45 PM"],
    ),
    (
        MovieCreate(
            title="Black Widow",
            genre="Action, Thriller",
            duration_mins=134,
            poster_url="https://images.unsplash.com/photo-1594909122845-11baa439b7bf?auto=format&fit=crop&w=800&q=80",
        ),
        ["9:30 AM", "12:00 PM", "2:30 PM", "5:00 PM", "7:30 PM", "10:00 PM"],
    ),
    (
        MovieCreate(
            title="No Time to Die",
            genre="Action, Adventure",
            duration_mins=163,
            poster_url="https://images.unsplash.com/photo-1616530940355-351fabd9524b?auto=format&fit=crop&w=800&q=80",
        ),
        ["9:00 AM", "11:55 AM", "2:50 PM", "5:45 PM", "8:40 PM", "11:35 PM"],
    ),
]


def generate_seats(showtime_id: int) -> List[SeatCreate]:
    """All seats of one showtime, unbooked, in render order."""
    seats = []
    for count, prefix, seat_type in SEAT_LAYOUT:
        for number in range(1, count + 1):
            seats.append(SeatCreate(name=f"{prefix}{number}", type=seat_type, booked=False, showtime_id=showtime_id))
    return seats


def seed_date(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()
