from fastapi import APIRouter, Request

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return {"ok": True}

@router.get("/sessions")
def health_sessions(request: Request):
    registry = getattr(request.app.state, "sessions", None)
    materializer = getattr(request.app.state, "materializer", None)
    return {
        "ok": True,
        "sessions": len(registry) if registry is not None else 0,
        "materialized_payments": len(materializer) if materializer is not None else 0,
        "pending_payment_locks": materializer.pending_locks() if materializer is not None else 0,
    }
