"""Catalog seed data: achievements, challenges, games and rewards.

Every catalog is upserted on ``slug``, so reseeding updates names, rewards and
thresholds in place without disturbing user rows that reference them.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from playquest.database import upsert
from playquest.db.models import Achievement, Challenge, Game, Reward

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Games
    {
        "slug": "first_game",
        "name": "First Steps",
        "description": "Complete your very first learning game",
        "category": "games",
        "requirement_type": "games_completed",
        "requirement_value": 1,
        "xp_reward": 25,
        "playcoins_reward": 10,
        "sort_order": 1,
    },
    {
        "slug": "games_5",
        "name": "Game Explorer",
        "description": "Complete 5 different games",
        "category": "games",
        "requirement_type": "games_completed",
        "requirement_value": 5,
        "xp_reward": 50,
        "playcoins_reward": 25,
        "sort_order": 2,
    },
    {
        "slug": "games_15",
        "name": "Game Master",
        "description": "Complete 15 different games",
        "category": "games",
        "requirement_type": "games_completed",
        "requirement_value": 15,
        "xp_reward": 150,
        "playcoins_reward": 75,
        "sort_order": 3,
    },
    # Streaks
    {
        "slug": "streak_3",
        "name": "On a Roll",
        "description": "Learn three days in a row",
        "category": "streak",
        "requirement_type": "streak_days",
        "requirement_value": 3,
        "xp_reward": 30,
        "playcoins_reward": 15,
        "sort_order": 10,
    },
    {
        "slug": "streak_7",
        "name": "Week Warrior",
        "description": "Keep a 7-day learning streak",
        "category": "streak",
        "requirement_type": "streak_days",
        "requirement_value": 7,
        "xp_reward": 75,
        "playcoins_reward": 40,
        "sort_order": 11,
    },
    {
        "slug": "streak_30",
        "name": "Unstoppable",
        "description": "Keep a 30-day learning streak",
        "category": "streak",
        "requirement_type": "streak_days",
        "requirement_value": 30,
        "xp_reward": 300,
        "playcoins_reward": 150,
        "sort_order": 12,
    },
    {
        "slug": "longest_streak_14",
        "name": "Habit Builder",
        "description": "Reach a best-ever streak of 14 days",
        "category": "streak",
        "requirement_type": "longest_streak",
        "requirement_value": 14,
        "xp_reward": 100,
        "playcoins_reward": 50,
        "sort_order": 13,
    },
    # Levels and XP
    {
        "slug": "level_5",
        "name": "Rising Star",
        "description": "Reach level 5",
        "category": "progress",
        "requirement_type": "level_reached",
        "requirement_value": 5,
        "xp_reward": 0,
        "playcoins_reward": 50,
        "sort_order": 20,
    },
    {
        "slug": "level_10",
        "name": "Scholar",
        "description": "Reach level 10",
        "category": "progress",
        "requirement_type": "level_reached",
        "requirement_value": 10,
        "xp_reward": 0,
        "playcoins_reward": 150,
        "sort_order": 21,
    },
    {
        "slug": "xp_1000",
        "name": "Knowledge Seeker",
        "description": "Earn 1,000 XP in total",
        "category": "progress",
        "requirement_type": "xp_earned",
        "requirement_value": 1000,
        "xp_reward": 0,
        "playcoins_reward": 50,
        "sort_order": 22,
    },
    # PlayCoins
    {
        "slug": "coins_100",
        "name": "Piggy Bank",
        "description": "Earn 100 PlayCoins in total",
        "category": "playcoins",
        "requirement_type": "playcoins_earned",
        "requirement_value": 100,
        "xp_reward": 25,
        "playcoins_reward": 0,
        "sort_order": 30,
    },
    {
        "slug": "coins_1000",
        "name": "Treasure Keeper",
        "description": "Earn 1,000 PlayCoins in total",
        "category": "playcoins",
        "requirement_type": "playcoins_earned",
        "requirement_value": 1000,
        "xp_reward": 100,
        "playcoins_reward": 0,
        "sort_order": 31,
    },
    # Tasks
    {
        "slug": "first_task",
        "name": "Real World Learner",
        "description": "Get your first real-life task approved",
        "category": "tasks",
        "requirement_type": "tasks_completed",
        "requirement_value": 1,
        "xp_reward": 40,
        "playcoins_reward": 20,
        "sort_order": 40,
    },
    {
        "slug": "tasks_10",
        "name": "Community Helper",
        "description": "Get 10 real-life tasks approved",
        "category": "tasks",
        "requirement_type": "tasks_completed",
        "requirement_value": 10,
        "xp_reward": 120,
        "playcoins_reward": 60,
        "sort_order": 41,
    },
]

CHALLENGE_SEED_DATA: list[dict] = [
    {
        "slug": "daily_play_1",
        "cadence": "daily",
        "title": "Warm Up",
        "description": "Complete 1 game today",
        "challenge_type": "games_completed",
        "requirement_value": 1,
        "playcoins_reward": 5,
        "xp_reward": 10,
    },
    {
        "slug": "daily_play_3",
        "cadence": "daily",
        "title": "Triple Play",
        "description": "Complete 3 games today",
        "challenge_type": "games_completed",
        "requirement_value": 3,
        "playcoins_reward": 15,
        "xp_reward": 30,
    },
    {
        "slug": "daily_quiz",
        "cadence": "daily",
        "title": "Quiz Time",
        "description": "Answer 5 quiz questions correctly",
        "challenge_type": "quiz_correct",
        "requirement_value": 5,
        "playcoins_reward": 10,
        "xp_reward": 20,
    },
    {
        "slug": "daily_time_15",
        "cadence": "daily",
        "title": "Focused Learner",
        "description": "Spend 15 minutes learning",
        "challenge_type": "minutes_learned",
        "requirement_value": 15,
        "playcoins_reward": 10,
        "xp_reward": 15,
    },
    {
        "slug": "weekly_play_10",
        "cadence": "weekly",
        "title": "Weekly Gamer",
        "description": "Complete 10 games this week",
        "challenge_type": "games_completed",
        "requirement_value": 10,
        "playcoins_reward": 50,
        "xp_reward": 100,
    },
    {
        "slug": "weekly_task_2",
        "cadence": "weekly",
        "title": "Hands On",
        "description": "Submit 2 real-life tasks this week",
        "challenge_type": "tasks_submitted",
        "requirement_value": 2,
        "playcoins_reward": 40,
        "xp_reward": 80,
    },
    {
        "slug": "weekly_streak_5",
        "cadence": "weekly",
        "title": "Five Day Focus",
        "description": "Learn on 5 days this week",
        "challenge_type": "active_days",
        "requirement_value": 5,
        "playcoins_reward": 60,
        "xp_reward": 120,
    },
]

GAME_SEED_DATA: list[dict] = [
    {"slug": "math-missions", "name": "Math Missions", "subject": "mathematics", "difficulty_level": 1, "playcoins_reward": 20, "xp_reward": 40},
    {"slug": "fraction-forge", "name": "Fraction Forge", "subject": "mathematics", "difficulty_level": 2, "playcoins_reward": 25, "xp_reward": 50},
    {"slug": "equation-builder", "name": "Equation Builder", "subject": "mathematics", "difficulty_level": 3, "playcoins_reward": 30, "xp_reward": 60},
    {"slug": "chemistry-lab", "name": "Chemistry Lab", "subject": "chemistry", "difficulty_level": 2, "playcoins_reward": 25, "xp_reward": 50},
    {"slug": "periodic-table-puzzle", "name": "Periodic Table Puzzle", "subject": "chemistry", "difficulty_level": 3, "playcoins_reward": 30, "xp_reward": 60},
    {"slug": "gravity-drop", "name": "Gravity Drop", "subject": "physics", "difficulty_level": 1, "playcoins_reward": 20, "xp_reward": 40},
    {"slug": "force-balance", "name": "Force Balance", "subject": "physics", "difficulty_level": 2, "playcoins_reward": 25, "xp_reward": 50},
    {"slug": "build-a-cell", "name": "Build a Cell", "subject": "biology", "difficulty_level": 1, "playcoins_reward": 20, "xp_reward": 40},
    {"slug": "food-chain-hunter", "name": "Food Chain Hunter", "subject": "biology", "difficulty_level": 2, "playcoins_reward": 25, "xp_reward": 50},
    {"slug": "village-shopkeeper", "name": "Village Shopkeeper", "subject": "finance", "difficulty_level": 1, "playcoins_reward": 20, "xp_reward": 40},
    {"slug": "village-budget-planner", "name": "Village Budget Planner", "subject": "finance", "difficulty_level": 2, "playcoins_reward": 25, "xp_reward": 50},
    {"slug": "village-power-engineer", "name": "Village Power Engineer", "subject": "technology", "difficulty_level": 3, "playcoins_reward": 30, "xp_reward": 60},
]

REWARD_SEED_DATA: list[dict] = [
    {"slug": "study_001", "name": "Premium Notebook Set", "description": "3 quality ruled notebooks for organized note-taking", "category": "study", "playcoins_cost": 80, "stock_quantity": 50},
    {"slug": "study_002", "name": "Pen & Pencil Kit", "description": "24-piece premium writing and sketching set", "category": "study", "playcoins_cost": 75, "stock_quantity": 60},
    {"slug": "study_003", "name": "Geometry Box", "description": "Complete compass, ruler, and protractor set", "category": "study", "playcoins_cost": 90, "stock_quantity": 40},
    {"slug": "study_005", "name": "Scientific Calculator", "description": "Advanced functions for math and science", "category": "study", "playcoins_cost": 150, "stock_quantity": 25},
    {"slug": "skill_001", "name": "Science Experiment Kit", "description": "Hands-on experiments for home learning", "category": "skill", "playcoins_cost": 180, "stock_quantity": 20},
    {"slug": "skill_002", "name": "Robotics Starter Kit", "description": "Build and program a simple robot", "category": "skill", "playcoins_cost": 250, "stock_quantity": 15},
    {"slug": "fun_001", "name": "Art & Craft Kit", "description": "Paints, brushes and craft supplies", "category": "fun", "playcoins_cost": 110, "stock_quantity": 35},
    {"slug": "fun_005", "name": "DIY & Origami Kit", "description": "Paper craft projects for all ages", "category": "fun", "playcoins_cost": 60, "stock_quantity": 60},
    {"slug": "family_005", "name": "First Aid Kit", "description": "Basic first aid supplies for the household", "category": "family", "playcoins_cost": 85, "stock_quantity": 55},
    {"slug": "family_006", "name": "Cloth Shopping Bags", "description": "Reusable bags for the family", "category": "family", "playcoins_cost": 45, "stock_quantity": 80},
    {"slug": "community_001", "name": "Tree Saplings", "description": "Plant trees in your village", "category": "community", "playcoins_cost": 100, "stock_quantity": 100},
    {"slug": "community_003", "name": "Solar Lantern", "description": "Solar-powered light for evening study", "category": "community", "playcoins_cost": 140, "stock_quantity": 30},
    {"slug": "premium_certificate", "name": "Achievement Certificate", "description": "Printed certificate of your learning journey", "category": "premium", "playcoins_cost": 200, "stock_quantity": None},
]


async def _seed_table(db: AsyncSession, model: type, rows: list[dict]) -> int:
    table = model.__table__
    for row in rows:
        stmt = upsert(db, table).values(**row)
        stmt = stmt.on_conflict_do_update(
            index_elements=["slug"],
            set_={key: stmt.excluded[key] for key in row if key != "slug"},
        )
        await db.execute(stmt)
    return len(rows)


async def seed_catalogs(db: AsyncSession) -> dict[str, int]:
    """Upsert every catalog. Returns the number of rows seeded per catalog."""
    counts = {
        "achievements": await _seed_table(db, Achievement, ACHIEVEMENT_SEED_DATA),
        "challenges": await _seed_table(db, Challenge, CHALLENGE_SEED_DATA),
        "games": await _seed_table(db, Game, GAME_SEED_DATA),
        "rewards": await _seed_table(db, Reward, REWARD_SEED_DATA),
    }
    await db.commit()
    logger.info("Seeded catalogs: %s", counts)
    return counts
