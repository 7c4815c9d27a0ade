from .errors import error_detail
from .auth import normalize_email
