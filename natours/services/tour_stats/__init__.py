from __future__ import annotations

from datetime import datetime

from natours.models.tour import Tour


def get_tour_stats(min_rating: float = 4.5) -> list[dict]:
    """Per-difficulty counts, rating sums and price figures for well-rated tours."""
    return list(Tour.objects.aggregate([
        {"$match": {"ratingsAverage": {"$gte": min_rating}}},
        {"$group": {
            "_id": {"$toUpper": "$difficulty"},
            "numTours": {"$sum": 1},
            "numRatings": {"$sum": "$ratingsQuantity"},
            "avgRating": {"$avg": "$ratingsAverage"},
            "avgPrice": {"$avg": "$price"},
            "minPrice": {"$min": "$price"},
            "maxPrice": {"$max": "$price"},
        }},
        {"$sort": {"avgPrice": 1}},
    ]))


def get_monthly_plan(year: int) -> list[dict]:
    """Number of tour starts per month of ``year``, busiest month first."""
    return list(Tour.objects.aggregate([
        {"$unwind": "$startDates"},
        {"$match": {"startDates": {"$gte": datetime(year, 1, 1), "$lt": datetime(year + 1, 1, 1)}}},
        {"$group": {
            "_id": {"$month": "$startDates"},
            "numTourStarts": {"$sum": 1},
            "tours": {"$push": "$name"},
        }},
        {"$addFields": {"month": "$_id"}},
        {"$project": {"_id": 0}},
        {"$sort": {"numTourStarts": -1, "month": 1}},
        {"$limit": 12},
    ]))


def top_cheap_tours(limit: int = 5) -> list[Tour]:
    """Best rated tours first, cheapest first among equals."""
    return list(Tour.objects.order_by("-ratings_average", "price").limit(limit))
