"""
Services module initialization.
"""

from cadence.services.bulk_check_in_service import BulkCheckInResult, BulkCheckInService
from cadence.services.check_in_service import CheckInResult, CheckInService
from cadence.services.confidence_moments import ConfidenceMoment, ConfidenceMomentPublisher
from cadence.services.goal_graph import GoalAdjacency, GoalGraphService, resolve_hierarchy_ids
from cadence.services.goal_hierarchy import (
    EnrichedHierarchy,
    GoalHierarchy,
    GoalHierarchyService,
    HierarchyNode,
    build_hierarchy,
    enrich_hierarchy,
)
from cadence.services.goal_link_service import BulkGoalCreationResult, GoalLinkService
from cadence.services.outline_parser import OutlineItem, parse_outline
from cadence.services.permissions import Viewer, ViewPermission, can_view_goal
from cadence.services.progress_chart import ProgressChartData, ProgressChartService, build_progress_chart
from cadence.services.schedule_confidence import (
    GoalScheduleService,
    ScheduleStatus,
    ScheduleThresholds,
    classify_confidence,
    compute_thresholds,
)

__all__ = [
    "BulkCheckInResult",
    "BulkCheckInService",
    "CheckInResult",
    "CheckInService",
    "ConfidenceMoment",
    "ConfidenceMomentPublisher",
    "GoalAdjacency",
    "GoalGraphService",
    "resolve_hierarchy_ids",
    "EnrichedHierarchy",
    "GoalHierarchy",
    "GoalHierarchyService",
    "HierarchyNode",
    "build_hierarchy",
    "enrich_hierarchy",
    "BulkGoalCreationResult",
    "GoalLinkService",
    "OutlineItem",
    "parse_outline",
    "Viewer",
    "ViewPermission",
    "can_view_goal",
    "ProgressChartData",
    "ProgressChartService",
    "build_progress_chart",
    "GoalScheduleService",
    "ScheduleStatus",
    "ScheduleThresholds",
    "classify_confidence",
    "compute_thresholds",
]
