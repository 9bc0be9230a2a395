"""
Result models for gating decisions and synchronization actions.

Actions never raise past their boundary; they report through SyncOutcome.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class SyncAction(Enum):
    """Synchronization actions the engine can run"""
    COMPILE = "compile"
    DOWNLOAD = "download"


class SyncPlan(BaseModel):
    """Which sub-flows should run, and why not when nothing does"""
    model_config = ConfigDict(frozen=True)

    run_compile: bool = False
    run_download: bool = False
    reason: str = ""

    @property
    def is_disabled(self) -> bool:
        return not (self.run_compile or self.run_download)

    @classmethod
    def disabled(cls, reason: str) -> 'SyncPlan':
        """Plan that turns both sub-flows off"""
        return cls(run_compile=False, run_download=False, reason=reason)


class SyncOutcome(BaseModel):
    """Result of a compile or download action"""

    action: SyncAction
    success: bool
    diagnostic: str = ""

    # Download only: remotes whose types could not be fetched
    failed: List[str] = Field(default_factory=list)
    skipped: bool = False

    timestamp: datetime = Field(default_factory=datetime.now)
    processing_time_ms: Optional[float] = None

    @classmethod
    def success_result(
        cls,
        action: SyncAction,
        processing_time_ms: Optional[float] = None
    ) -> 'SyncOutcome':
        """Create successful outcome"""
        return cls(action=action, success=True, processing_time_ms=processing_time_ms)

    @classmethod
    def error_result(
        cls,
        action: SyncAction,
        diagnostic: str,
        failed: Optional[List[str]] = None,
        processing_time_ms: Optional[float] = None
    ) -> 'SyncOutcome':
        """Create failed outcome"""
        return cls(
            action=action,
            success=False,
            diagnostic=diagnostic,
            failed=failed or [],
            processing_time_ms=processing_time_ms
        )


class CompileResult(BaseModel):
    """What the type compiler collaborator returns"""

    is_success: bool
    type_definitions: str = ""
    diagnostic: str = ""
