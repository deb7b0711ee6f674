import pytest

from commanda.core.errors import InvalidCredentials, MissingCredentials
from commanda.repositories import AdminRepository
from commanda.services.tenant_auth import resolve_tenant_context
from tests.fixtures_data import OTHER_INSTANCE, OTHER_TENANT, TENANT_A, TENANT_B, seed_instance, seed_tenant


def _repository(db):
    seed_tenant(db)
    seed_tenant(db, **OTHER_TENANT)
    seed_instance(db)
    seed_instance(db, **OTHER_INSTANCE)
    return AdminRepository(db)


def test_instance_token_resolves_tenant_from_stored_record(db):
    context = resolve_tenant_context({"x-instance-token": "tok-a"}, _repository(db))

    assert context.tenant_id == TENANT_A
    assert context.instance_id == "uaz-inst-a"
    assert context.instance_token == "tok-a"
    assert context.api_key == "tenant_aaaaaaaa_key"
    assert context.auth_scheme == "instance_token"


def test_api_key_is_used_when_token_absent(db):
    context = resolve_tenant_context({"x-api-key": "tenant_bbbbbbbb_key"}, _repository(db))

    assert context.tenant_id == TENANT_B
    assert context.auth_scheme == "api_key"


def test_instance_token_takes_precedence_over_api_key(db):
    context = resolve_tenant_context(
        {"x-instance-token": "tok-a", "x-api-key": "tenant_bbbbbbbb_key"},
        _repository(db),
    )

    assert context.tenant_id == TENANT_A


def test_invalid_token_does_not_fall_back_to_valid_api_key(db):
    with pytest.raises(InvalidCredentials) as exc:
        resolve_tenant_context(
            {"x-instance-token": "tok-desconhecido", "x-api-key": "tenant_bbbbbbbb_key"},
            _repository(db),
        )

    assert exc.value.message == "Instância não encontrada ou token inválido"
    assert exc.value.status_code == 401


def test_missing_headers_raise_missing_credentials(db):
    with pytest.raises(MissingCredentials) as exc:
        resolve_tenant_context({}, _repository(db))

    assert exc.value.message == "Header x-instance-token ou x-api-key é obrigatório"
    assert exc.value.status_code == 401


def test_empty_header_values_count_as_absent(db):
    repository = _repository(db)

    with pytest.raises(MissingCredentials):
        resolve_tenant_context({"x-instance-token": "", "x-api-key": ""}, repository)

    context = resolve_tenant_context({"x-instance-token": "", "x-api-key": "tenant_aaaaaaaa_key"}, repository)
    assert context.tenant_id == TENANT_A
    assert context.auth_scheme == "api_key"


def test_whitespace_header_is_a_credential_not_an_absence(db):
    with pytest.raises(InvalidCredentials):
        resolve_tenant_context({"x-api-key": "  "}, _repository(db))


@pytest.mark.parametrize(
    "headers",
    [
        {"x-instance-token": " tok-a"},
        {"x-instance-token": "tok-a "},
        {"x-api-key": "tenant_aaaaaaaa_key\t"},
    ],
)
def test_credentials_must_match_exactly(db, headers):
    with pytest.raises(InvalidCredentials):
        resolve_tenant_context(headers, _repository(db))
