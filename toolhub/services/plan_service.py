from __future__ import annotations

import logging
from datetime import UTC, datetime

from toolhub.core.exceptions import NotFoundException
from toolhub.models.plan import Plan
from toolhub.schemas.plan import PlanCreate, PlanUpdate
from toolhub.utils.validators import parse_object_id

logger = logging.getLogger(__name__)


class PlanService:
    """Service for plan management."""

    def __init__(self, db):
        self.db = db

    async def create_plan(self, plan_data: PlanCreate) -> Plan:
        """Create a new plan."""
        try:
            logger.info("Creating plan", extra={"plan_name": plan_data.name})

            plan = Plan(**plan_data.model_dump())
            await plan.insert()

            logger.info(
                "Plan created", extra={"plan_id": str(plan.id), "plan_name": plan.name}
            )
            return plan

        except Exception as e:
            logger.error(
                "Error creating plan",
                extra={"plan_name": plan_data.name, "error": str(e)},
                exc_info=True,
            )
            raise

    async def get_plan_by_id(self, plan_id: str) -> Plan:
        """Get plan by ID."""
        try:
            plan = await Plan.find_one(Plan.id == parse_object_id(plan_id, "Plan"))
            if not plan:
                raise NotFoundException(resource="Plan", resource_id=plan_id)
            return plan
        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error getting plan by ID",
                extra={"plan_id": plan_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def update_plan(self, plan_id: str, plan_update: PlanUpdate) -> Plan:
        """Update a plan."""
        try:
            plan = await self.get_plan_by_id(plan_id)

            update_data = plan_update.model_dump(exclude_unset=True)
            if not update_data:
                return plan

            for field, value in update_data.items():
                if hasattr(plan, field):
                    setattr(plan, field, value)

            plan.updatedAt = datetime.now(UTC)
            await plan.save()

            logger.info("Plan updated", extra={"plan_id": plan_id})
            return plan

        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error updating plan",
                extra={"plan_id": plan_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def deactivate_plan(self, plan_id: str) -> Plan:
        """Soft-delete a plan; orders keep pointing at it."""
        try:
            plan = await self.get_plan_by_id(plan_id)
            plan.isActive = False
            plan.updatedAt = datetime.now(UTC)
            await plan.save()

            logger.info("Plan deactivated", extra={"plan_id": plan_id})
            return plan

        except NotFoundException:
            raise
        except Exception as e:
            logger.error(
                "Error deactivating plan",
                extra={"plan_id": plan_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def list_plans(self, active_only: bool = True) -> list[Plan]:
        """List plans ordered by sort order, then price."""
        try:
            if active_only:
                query = Plan.find(Plan.isActive == True)  # noqa: E712
            else:
                query = Plan.find()

            plans = await query.sort("+sortOrder", "+price").to_list()

            logger.info(
                "Plans listed",
                extra={"count": len(plans), "active_only": active_only},
            )
            return plans

        except Exception as e:
            logger.error("Error listing plans", extra={"error": str(e)}, exc_info=True)
            raise
