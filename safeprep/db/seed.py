from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safeprep.models import Achievement, AdminSetting, LearningModule, SafetyAlert, SafetyGame, VideoTutorial


async def seed_if_needed(db: AsyncSession) -> None:
    existing = (await db.execute(select(LearningModule.id).limit(1))).scalar_one_or_none()
    if existing:
        return

    db.add_all(
        [
            LearningModule(
                title="Earthquake Safety",
                description="Drop, cover and hold on. Know the safe spots in every room.",
                icon="building",
                xp_reward=50,
                difficulty="beginner",
                hover_content="Learn what to do before, during and after shaking.",
                order_index=1,
            ),
            LearningModule(
                title="Flood Preparedness",
                description="Evacuation routes, sandbags and staying out of moving water.",
                icon="waves",
                xp_reward=50,
                difficulty="beginner",
                order_index=2,
            ),
            LearningModule(
                title="Fire Safety",
                description="Using extinguishers, crawling low under smoke and meeting points.",
                icon="flame",
                xp_reward=75,
                difficulty="intermediate",
                order_index=3,
            ),
            LearningModule(
                title="Cyclone Readiness",
                description="Securing the home, emergency kits and shelter locations.",
                icon="wind",
                xp_reward=100,
                difficulty="advanced",
                order_index=4,
            ),
        ]
    )

    db.add_all(
        [
            SafetyGame(
                title="Earthquake Escape",
                description="Find the safest path out of a shaking school building.",
                icon="zap",
                xp_reward=40,
                difficulty="beginner",
                order_index=1,
            ),
            SafetyGame(
                title="Flood Rescue Quiz",
                description="Answer quickly to guide your team to high ground.",
                icon="target",
                xp_reward=30,
                difficulty="beginner",
                order_index=2,
            ),
            SafetyGame(
                title="Fire Drill Commander",
                description="Plan and run an evacuation for your class.",
                icon="users",
                xp_reward=60,
                difficulty="intermediate",
                order_index=3,
            ),
        ]
    )

    db.add_all(
        [
            VideoTutorial(
                title="How to Drop, Cover and Hold On",
                description="A short walkthrough of the earthquake safety drill.",
                video_id="BLEPakj1YTY",
                duration="3:12",
                category="earthquake",
                order_index=1,
            ),
            VideoTutorial(
                title="Building an Emergency Kit",
                description="What every household kit should contain.",
                video_id="pFh-eEVEAdg",
                duration="4:45",
                category="preparedness",
                order_index=2,
            ),
        ]
    )

    db.add(
        SafetyAlert(
            type="weather",
            severity="medium",
            message="Heavy rainfall expected over the next 48 hours. Avoid low-lying areas.",
            icon="cloud-rain",
        )
    )

    db.add_all(
        [
            Achievement(
                title="First Steps",
                description="Complete your first learning module.",
                icon="star",
                xp_reward=25,
                requirement_type="modules_completed",
                requirement_value=1,
            ),
            Achievement(
                title="Game On",
                description="Finish any safety game.",
                icon="gamepad",
                xp_reward=25,
                requirement_type="games_completed",
                requirement_value=1,
            ),
        ]
    )

    db.add_all(
        [
            AdminSetting(
                setting_key="maintenance_mode",
                setting_value={"enabled": False, "message": "System under maintenance"},
                setting_type="system",
                description="Show a maintenance banner to every user.",
            ),
            AdminSetting(
                setting_key="alert_notifications",
                setting_value={"weather": True, "emergency": True, "system": False},
                setting_type="notification",
                description="Which alert categories are pushed to users.",
            ),
            AdminSetting(
                setting_key="session_timeout",
                setting_value={"value": 30, "unit": "minutes"},
                setting_type="security",
                description="Idle time before a session is closed.",
            ),
            AdminSetting(
                setting_key="leaderboard_enabled",
                setting_value=True,
                setting_type="feature",
                description="Show the regional leaderboard.",
                is_public=True,
            ),
        ]
    )

    await db.commit()
