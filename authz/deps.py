from fastapi import Depends, Header, HTTPException

from .context import ActorContext, ActorRole


def get_current_actor(
    x_actor_id: int | None = Header(None),
    x_actor_role: str | None = Header(None),
) -> ActorContext:
    if x_actor_id is None or not x_actor_role:
        raise HTTPException(status_code=401, detail="actor headers missing")
    try:
        role = ActorRole(x_actor_role)
    except ValueError:
        raise HTTPException(status_code=403, detail="unknown role")
    return ActorContext(user_id=x_actor_id, role=role)


def require_supervisor(actor: ActorContext = Depends(get_current_actor)) -> ActorContext:
    if not actor.is_supervisor:
        raise HTTPException(status_code=403, detail="Supervisor role required")
    return actor
