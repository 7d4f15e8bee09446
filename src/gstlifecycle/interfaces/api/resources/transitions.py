"""Lifecycle transition resources."""

import falcon.asgi

from gstlifecycle.application.dto.transition_dto import TransitionRequest, parse_datetime
from gstlifecycle.application.use_cases.transition.apply_transition import (
    ApplyTransitionUseCase,
)
from gstlifecycle.domain.exceptions import GSTLifecycleError, ValidationFault
from gstlifecycle.domain.value_objects import TransitionKind
from gstlifecycle.interfaces.api.resources.faults import (
    current_user,
    write_fault,
    write_result_status,
)
from gstlifecycle.interfaces.api.resources.serializers import result_to_dict

# transitions exposed as POST /v1/documents/{number}/{kind}
ROUTED_TRANSITIONS = (
    TransitionKind.ACCEPT,
    TransitionKind.REJECT,
    TransitionKind.UPDATE_VEHICLE,
    TransitionKind.CANCEL,
    TransitionKind.CHANGE_TRANSPORTER,
    TransitionKind.EXTEND_VALIDITY,
    TransitionKind.EXPIRE,
)


class TransitionResource:
    """POST /v1/documents/{number}/<kind> - apply one lifecycle transition.

    Body is the kind-specific payload; an optional ``observed_at`` carries
    the time the caller believes the current status was entered.
    """

    def __init__(self, apply_transition: ApplyTransitionUseCase, kind: TransitionKind) -> None:
        self._apply_transition = apply_transition
        self._kind = kind

    async def on_post(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        number: str,
    ) -> None:
        user = current_user(req, resp)
        if user is None:
            return

        try:
            body = await req.get_media(default_when_empty={})
            if not isinstance(body, dict):
                raise ValidationFault("Request body must be a JSON object")
            observed_at = parse_datetime(body.get("observed_at"), "observed_at")
        except ValidationFault as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": str(e)}
            return

        request = TransitionRequest(
            document_number=number,
            kind=self._kind,
            payload={k: v for k, v in body.items() if k != "observed_at"},
            observed_at=observed_at,
        )
        try:
            result = await self._apply_transition.execute(user.user_id, request)
        except GSTLifecycleError as e:
            write_fault(resp, e)
            return
        resp.media = result_to_dict(result)
        write_result_status(resp, result.applied)
