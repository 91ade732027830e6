from .api_client import GitHubClient
from .settings import apply_repository_settings, token_from_env

__all__ = ["GitHubClient", "apply_repository_settings", "token_from_env"]
