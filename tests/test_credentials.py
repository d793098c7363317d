from core.config import AppSettings
from core.credentials import CredentialSource, resolve_credential


def _settings(token):
    return AppSettings(_env_file=None, github_access_token=token)


def test_server_token_wins_over_caller_token():
    credential = resolve_credential(_settings("server-token"), "caller-token")

    assert credential is not None
    assert credential.reveal() == "server-token"
    assert credential.source is CredentialSource.ENVIRONMENT


def test_caller_token_used_without_server_token():
    credential = resolve_credential(_settings(None), "caller-token")

    assert credential is not None
    assert credential.reveal() == "caller-token"
    assert credential.source is CredentialSource.CALLER


def test_no_token_means_anonymous():
    assert resolve_credential(_settings(None), None) is None


def test_blank_tokens_are_absent():
    assert resolve_credential(_settings("   "), "") is None
    credential = resolve_credential(_settings(""), "  caller  ")
    assert credential is not None
    assert credential.reveal() == "caller"


def test_token_is_not_leaked_in_repr():
    credential = resolve_credential(_settings("super-secret"))

    assert "super-secret" not in repr(credential)
