"""Plan-selection API router."""

from fastapi import APIRouter, Depends

from plangate.common.security import require_api_key
from plangate.gating.collaborators import CollectingEmitter
from plangate.gating.schemas import PlanSelectionEvent, PlanSelectionResponse
from plangate.gating.service import GateEvaluation

router = APIRouter()


def _get_gate():
    from plangate.deps import get_gate
    return get_gate()


def to_response(evaluation: GateEvaluation, emitter: CollectingEmitter) -> PlanSelectionResponse:
    return PlanSelectionResponse(
        state=evaluation.state.value,
        allowed=not emitter.denied,
        summary=emitter.summary or "",
        reasons=emitter.reasons,
        limit=evaluation.limit.as_int() if evaluation.limit is not None else None,
        usage=evaluation.usage,
    )


@router.post("/plan-selection", response_model=PlanSelectionResponse)
async def evaluate_plan_selection(body: PlanSelectionEvent, _=Depends(require_api_key)):
    gate = _get_gate()
    emitter = CollectingEmitter()
    evaluation = await gate.evaluate(body, emitter)
    return to_response(evaluation, emitter)
