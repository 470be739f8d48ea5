from rest_framework_simplejwt.tokens import AccessToken


def issue_access_token(user) -> str:
    """Signed bearer token carrying the ``userId`` and ``role`` claims."""
    token = AccessToken.for_user(user)
    token["role"] = str(user.role)
    return str(token)
