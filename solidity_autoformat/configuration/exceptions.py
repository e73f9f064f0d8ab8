"""Exceptions raised while assembling the GitHub configuration a run needs to comment on pull requests."""


class GitHubAuthenticationConfigurationUndefinedError(Exception):
    """Raised when neither, or both, of token and GitHub App credentials are configured, or App credentials are partial."""


class RequiredConfigurationElementError(Exception):
    """Raised when a setting needed for commenting (such as GITHUB_REPOSITORY) is absent."""

    def __init__(self, name: str, cli_name: str, env_name: str) -> None:
        """Record which element is missing and where it can be supplied."""
        super().__init__(f"Missing required configuration element: {name} (command line option {cli_name}, environment variable {env_name})")
        self.name = name
        self.cli_name = cli_name
        self.env_name = env_name
