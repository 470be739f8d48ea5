from django.utils.deprecation import MiddlewareMixin
from rest_framework.renderers import JSONRenderer

from apps.api.validation import validate_request_context
from apps.common import get_logger

logger = get_logger(__name__).bind(component='api', layer='middleware')


class RequestValidationMiddleware(MiddlewareMixin):
    """
    Runs the authorization predicates registered for a view before the view
    executes. A rejected request never reaches the handler.
    """

    def process_view(self, request, view_func, view_args, view_kwargs):
        view_class = getattr(view_func, 'view_class', None)
        if not view_class:
            return None
        view_name = getattr(view_class, '__name__', str(view_class))
        response = validate_request_context(request, view_class, view_kwargs)
        if response is None:
            return None
        logger.info(
            'Request blocked by validation',
            view=view_name,
            method=request.method,
            status=response.status_code,
        )
        # Returned outside DRF's view machinery, so render it here
        response.accepted_renderer = JSONRenderer()
        response.accepted_media_type = 'application/json'
        response.renderer_context = {}
        response.render()
        return response
