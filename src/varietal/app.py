"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from varietal.adapters.entity_api import EntityApiUnitOfWork
from varietal.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from varietal.config import RunConfig, get_run_config
from varietal.domain.access import require_admin
from varietal.domain.classification import ClassificationRunner
from varietal.domain.errors import InvalidRequestError
from varietal.domain.ports import CatalogUnitOfWork
from varietal.domain.reconciliation import (
    CompletenessWeights,
    DuplicateMergeEngine,
    MergePolicy,
    NormalizationStrength,
    ScalarPolicy,
)
from varietal.domain.subcategories import SubcategoryRepairRunner, audit_subcategories

if TYPE_CHECKING:
    from collections.abc import Mapping

    from varietal.domain.access import Caller
    from varietal.domain.classification import ClassificationRunResult
    from varietal.domain.reconciliation import MergeRunResult
    from varietal.domain.subcategories import AuditReport, RepairRunResult

UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]


log = getLogger(__name__)


class MaintenanceOperation(StrEnum):
    MERGE = "merge"
    CLASSIFY = "classify"
    REPAIR_SUBCATEGORIES = "repair-subcategories"
    AUDIT_SUBCATEGORIES = "audit-subcategories"


class ScopedRequest(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    plant_type_id: str = Field(min_length=1)
    dry_run: bool = True


class MergeRequest(ScopedRequest):
    max_groups: int | None = Field(default=None, ge=1)


class ClassificationRequest(ScopedRequest):
    max_items: int | None = Field(default=None, ge=1)


class SubcategoryRequest(ScopedRequest):
    max_items: int | None = Field(default=None, ge=1)


_REQUEST_TYPES: dict[MaintenanceOperation, type[ScopedRequest]] = {
    MaintenanceOperation.MERGE: MergeRequest,
    MaintenanceOperation.CLASSIFY: ClassificationRequest,
    MaintenanceOperation.REPAIR_SUBCATEGORIES: SubcategoryRequest,
    MaintenanceOperation.AUDIT_SUBCATEGORIES: SubcategoryRequest,
}


def default_unit_of_work_factory(config: RunConfig) -> UnitOfWorkFactory:
    """Return the unit of work for the configured store backend."""

    if config.store_backend == "api":
        return EntityApiUnitOfWork
    if not is_started():
        startup()
    return SqlAlchemyCatalogUnitOfWork


def build_merge_engine(config: RunConfig) -> DuplicateMergeEngine:
    return DuplicateMergeEngine(
        strength=NormalizationStrength(config.name_normalization),
        weights=CompletenessWeights(source_bonus=config.source_weight),
        merge_policy=MergePolicy(scalar=ScalarPolicy(config.scalar_policy)),
    )


def build_classification_runner(config: RunConfig) -> ClassificationRunner:
    return ClassificationRunner(
        write_delay=config.write_delay,
        failure_backoff=config.failure_backoff,
    )


def merge_duplicates(
    request: MergeRequest,
    *,
    caller: Caller,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    run_config: RunConfig | None = None,
    engine: DuplicateMergeEngine | None = None,
) -> MergeRunResult:
    """Find duplicate varieties in one plant type and, unless dry-running, merge them."""

    require_admin(caller)
    config = run_config or get_run_config()
    effective_uow = unit_of_work_factory or default_unit_of_work_factory(config)
    effective_engine = engine or build_merge_engine(config)
    max_groups = request.max_groups or config.max_groups
    log.info(
        "Starting duplicate merge: plant_type_id=%s, dry_run=%s, max_groups=%s, caller=%s",
        request.plant_type_id,
        request.dry_run,
        max_groups,
        caller.id,
    )

    with effective_uow() as uow:
        result = effective_engine.run(
            uow.repositories.store,
            plant_type_id=request.plant_type_id,
            dry_run=request.dry_run,
            max_groups=max_groups,
        )
        uow.commit()

    log.info(f"Finished duplicate merge: {result.message}")
    return result


def classify_unassigned(
    request: ClassificationRequest,
    *,
    caller: Caller,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    run_config: RunConfig | None = None,
    runner: ClassificationRunner | None = None,
) -> ClassificationRunResult:
    """Assign subcategories to varieties of one plant type that have none."""

    require_admin(caller)
    config = run_config or get_run_config()
    effective_uow = unit_of_work_factory or default_unit_of_work_factory(config)
    effective_runner = runner or build_classification_runner(config)
    max_items = request.max_items or config.max_items
    log.info(
        "Starting classification: plant_type_id=%s, dry_run=%s, max_items=%s, caller=%s",
        request.plant_type_id,
        request.dry_run,
        max_items,
        caller.id,
    )

    with effective_uow() as uow:
        result = effective_runner.run(
            uow.repositories.store,
            plant_type_id=request.plant_type_id,
            dry_run=request.dry_run,
            max_items=max_items,
        )
        uow.commit()

    log.info(f"Finished classification: {result.message}")
    return result


def repair_subcategories(
    request: SubcategoryRequest,
    *,
    caller: Caller,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    run_config: RunConfig | None = None,
    runner: SubcategoryRepairRunner | None = None,
) -> RepairRunResult:
    require_admin(caller)
    config = run_config or get_run_config()
    effective_uow = unit_of_work_factory or default_unit_of_work_factory(config)
    effective_runner = runner or SubcategoryRepairRunner()
    max_items = request.max_items or config.max_items
    log.info(
        "Starting subcategory repair: plant_type_id=%s, dry_run=%s, max_items=%s, caller=%s",
        request.plant_type_id,
        request.dry_run,
        max_items,
        caller.id,
    )

    with effective_uow() as uow:
        result = effective_runner.run(
            uow.repositories.store,
            plant_type_id=request.plant_type_id,
            dry_run=request.dry_run,
            max_items=max_items,
        )
        uow.commit()

    log.info(f"Finished subcategory repair: {result.message}")
    return result


def audit_subcategory_links(
    request: SubcategoryRequest,
    *,
    caller: Caller,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    run_config: RunConfig | None = None,
) -> AuditReport:
    """Report subcategory link inconsistencies; never writes."""

    require_admin(caller)
    config = run_config or get_run_config()
    effective_uow = unit_of_work_factory or default_unit_of_work_factory(config)
    log.info(
        "Starting subcategory audit: plant_type_id=%s, caller=%s",
        request.plant_type_id,
        caller.id,
    )

    with effective_uow() as uow:
        report = audit_subcategories(uow.repositories.store, plant_type_id=request.plant_type_id)

    log.info(
        "Finished subcategory audit: scanned=%s, consistent=%s",
        report.scanned,
        report.is_consistent,
    )
    return report


def _describe(exc: ValidationError) -> str:
    problems: list[str] = []
    for error in exc.errors():
        field_path = ".".join(str(part) for part in error["loc"]) or "request"
        if error["type"] == "missing":
            problems.append(f"{field_path} required")
        else:
            problems.append(f"{field_path}: {error['msg']}")
    return "; ".join(problems)


def parse_request(
    operation: MaintenanceOperation | str,
    payload: Mapping[str, Any] | None,
) -> tuple[MaintenanceOperation, ScopedRequest]:
    try:
        resolved = MaintenanceOperation(operation)
    except ValueError as exc:
        raise InvalidRequestError(f"Unknown operation: {operation}") from exc
    try:
        request = _REQUEST_TYPES[resolved].model_validate(dict(payload or {}))
    except ValidationError as exc:
        raise InvalidRequestError(_describe(exc)) from exc
    return resolved, request


def handle_request(
    operation: MaintenanceOperation | str,
    payload: Mapping[str, Any] | None,
    *,
    caller: Caller,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    run_config: RunConfig | None = None,
) -> dict[str, Any]:
    """Validate a JSON-like request, run the operation, and return its JSON-like response.

    Authorization is checked first, so an unprivileged caller learns nothing
    about the request and no store is touched.
    """

    require_admin(caller)
    resolved, request = parse_request(operation, payload)
    options: dict[str, Any] = {
        "caller": caller,
        "unit_of_work_factory": unit_of_work_factory,
        "run_config": run_config,
    }
    if isinstance(request, MergeRequest):
        return merge_duplicates(request, **options).as_dict()
    if isinstance(request, ClassificationRequest):
        return classify_unassigned(request, **options).as_dict()
    if not isinstance(request, SubcategoryRequest):
        raise InvalidRequestError(f"Unsupported request for {resolved}")
    if resolved is MaintenanceOperation.AUDIT_SUBCATEGORIES:
        return audit_subcategory_links(request, **options).as_dict()
    return repair_subcategories(request, **options).as_dict()
