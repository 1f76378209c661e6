"""Celery worker configuration."""

from celery import Celery

from winning_formula.config import settings
from winning_formula.logging import setup_logging

# Setup logging before anything else
setup_logging("worker")

# Create Celery app
celery_app = Celery(
    "winning_formula",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,  # 10 minutes max
    task_soft_time_limit=540,  # 9 minutes soft limit
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "analyze_video": {"queue": "high"},
        "batch_analyze_videos": {"queue": "default"},
        "compute_user_patterns": {"queue": "default"},
        "generate_global_insights": {"queue": "low"},
        "sync_tiktok_accounts": {"queue": "low"},
    },
    # Beat scheduler (for periodic tasks)
    beat_schedule={
        # Pending video analysis - every 15 minutes
        "batch-analyze-15m": {
            "task": "batch_analyze_videos",
            "schedule": 900.0,
            "options": {"queue": "default"},
        },
        # TikTok metrics sync - every 6 hours
        "sync-tiktok-6h": {
            "task": "sync_tiktok_accounts",
            "schedule": 21600.0,
            "options": {"queue": "low"},
        },
        # Global insights - daily
        "generate-global-insights-daily": {
            "task": "generate_global_insights",
            "schedule": 86400.0,
            "options": {"queue": "low"},
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["winning_formula.jobs"])
