import pytest

from supplyhub.errors import Unauthenticated
from supplyhub.identity import IdentityVerifier
from tests.conftest import PROJECT, SECRET, make_token


@pytest.fixture
def verifier():
    return IdentityVerifier(
        project_id=PROJECT,
        issuer=f"https://securetoken.google.com/{PROJECT}",
        shared_secret=SECRET,
    )


def test_valid_token_yields_subject_and_email(verifier):
    ident = verifier.verify(make_token("uid-123", "a@b.com"))
    assert ident.uid == "uid-123"
    assert ident.email == "a@b.com"


def test_expired_token(verifier):
    with pytest.raises(Unauthenticated, match="expired"):
        verifier.verify(make_token("uid-1", expires_in=-3600))


def test_wrong_audience(verifier):
    with pytest.raises(Unauthenticated):
        verifier.verify(make_token("uid-1", project="someone-else"))


def test_wrong_signature(verifier):
    with pytest.raises(Unauthenticated):
        verifier.verify(make_token("uid-1", secret="x" * 48))


def test_garbage_and_empty_tokens(verifier):
    with pytest.raises(Unauthenticated):
        verifier.verify("not-a-jwt")
    with pytest.raises(Unauthenticated):
        verifier.verify("")
