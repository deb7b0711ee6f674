from decimal import Decimal

import pytest

from commanda.core.errors import ValidationFailed
from commanda.models import Order, OrderItem, OrderItemExtra
from commanda.repositories import AdminRepository
from commanda.schemas.requests import CreateOrderRequest
from commanda.services.order_intake import NormalizedItem, OrderIntake, normalize_items, order_to_dict
from tests.fixtures_data import OTHER_TENANT, TENANT_A, TENANT_B, seed_catalog, seed_tenant


def _request(items, **overrides):
    body = {
        "customer": {"phone": "11988887777", "name": "Maria Souza"},
        "delivery_type": "delivery",
        "delivery_address": "Rua das Flores, 10",
        "items": items,
        **overrides,
    }
    return CreateOrderRequest(**body)


@pytest.fixture
def catalog(db):
    seed_tenant(db)
    data = seed_catalog(db)
    x_burger, coca, sumido = data["products"]
    return {
        "x_burger": x_burger,
        "coca": coca,
        "sumido": sumido,
        "duplo": x_burger.variations[0],
        "bacon": x_burger.extras[0],
    }


def _intake(db):
    return OrderIntake(AdminRepository(db))


# Normalização


def test_normalize_scalar_item():
    items = normalize_items([{"product_id": "p1", "quantity": 2, "variation_id": "v1", "extras": ["e1", "e2"]}])

    assert items == [NormalizedItem(product_id="p1", quantity=2, variation_id="v1", extras=["e1", "e2"])]


def test_normalize_parallel_arrays():
    items = normalize_items(
        [
            {
                "product_id": ["p1", "p2"],
                "quantity": [2, 1],
                "variation_id": ["v1", None],
                "extras": [["e1"], []],
            }
        ]
    )

    assert items == [
        NormalizedItem(product_id="p1", quantity=2, variation_id="v1", extras=["e1"]),
        NormalizedItem(product_id="p2", quantity=1, variation_id=None, extras=[]),
    ]


def test_normalize_array_with_scalar_quantity_repeats_it():
    items = normalize_items([{"product_id": ["p1", "p2"], "quantity": 3}])

    assert [i.quantity for i in items] == [3, 3]


def test_normalize_scalar_product_with_array_quantity_uses_first():
    items = normalize_items([{"product_id": "p1", "quantity": [4, 9], "extras": [["e1"], ["e2"]]}])

    assert items == [NormalizedItem(product_id="p1", quantity=4, extras=["e1"])]


def test_normalize_rejects_mismatched_arrays():
    with pytest.raises(ValidationFailed) as exc:
        normalize_items([{"product_id": ["p1", "p2"], "quantity": [1]}])

    assert exc.value.message == "Arrays de product_id e quantity devem ter o mesmo tamanho"


@pytest.mark.parametrize("quantity", [0, -1, "abc", None, True])
def test_normalize_rejects_invalid_quantity(quantity):
    with pytest.raises(ValidationFailed) as exc:
        normalize_items([{"product_id": "p1", "quantity": quantity}])

    assert exc.value.message == "Quantidade inválida para o produto p1"


def test_normalize_requires_product_id():
    with pytest.raises(ValidationFailed) as exc:
        normalize_items([{"quantity": 1}])

    assert exc.value.message == "product_id é obrigatório em todos os itens"


# Validação do pedido


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"customer": {"name": "Maria"}}, "Telefone do cliente é obrigatório"),
        ({"customer": None}, "Telefone do cliente é obrigatório"),
        ({"items": []}, "Pedido deve ter pelo menos 1 item"),
        ({"delivery_type": "drone"}, 'Tipo de entrega inválido. Use "delivery" ou "pickup"'),
        ({"delivery_address": "   "}, "Endereço de entrega é obrigatório para pedidos delivery"),
    ],
)
def test_request_validation_messages(db, catalog, overrides, message):
    items = [{"product_id": catalog["coca"].id, "quantity": 1}]

    with pytest.raises(ValidationFailed) as exc:
        _intake(db).create(TENANT_A, _request(**{"items": items, **overrides}))

    assert exc.value.message == message
    assert db.query(Order).count() == 0


# Criação


def test_total_uses_variation_price_and_extras_per_unit(db, catalog):
    items = [
        {
            "product_id": catalog["x_burger"].id,
            "quantity": 2,
            "variation_id": catalog["duplo"].id,
            "extras": [catalog["bacon"].id],
        },
        {"product_id": catalog["coca"].id, "quantity": 1},
    ]

    created = _intake(db).create(TENANT_A, _request(items, notes="  sem cebola "))

    assert created.total == 28.5
    assert created.items_count == 2
    assert created.status == "pending"

    order = db.get(Order, created.order_id)
    assert order.tenant_id == TENANT_A
    assert order.total_amount == Decimal("28.50")
    assert order.customer_name == "Maria Souza"
    assert order.notes == "sem cebola"

    burger = db.query(OrderItem).filter(OrderItem.product_id == catalog["x_burger"].id).one()
    assert burger.variation_name == "Duplo"
    assert burger.product_price == Decimal("8.00")
    assert burger.subtotal == Decimal("22.00")
    extra = db.query(OrderItemExtra).one()
    assert (extra.extra_name, extra.extra_price) == ("Bacon", Decimal("3.00"))


def test_pickup_drops_address(db, catalog):
    items = [{"product_id": catalog["coca"].id, "quantity": 3}]

    created = _intake(db).create(TENANT_A, _request(items, delivery_type="pickup"))

    order = db.get(Order, created.order_id)
    assert order.delivery_address is None
    assert created.total == 19.5


def test_unavailable_products_are_listed(db, catalog):
    items = [
        {"product_id": catalog["sumido"].id, "quantity": 1},
        {"product_id": catalog["coca"].id, "quantity": 1},
    ]

    with pytest.raises(ValidationFailed) as exc:
        _intake(db).create(TENANT_A, _request(items))

    assert exc.value.message == "Produtos indisponíveis: Burger Sumido"
    assert db.query(Order).count() == 0


def test_product_of_another_tenant_is_not_found(db, catalog):
    seed_tenant(db, **OTHER_TENANT)
    foreign = seed_catalog(db, tenant_id=TENANT_B)["products"][1]

    with pytest.raises(ValidationFailed) as only_foreign:
        _intake(db).create(TENANT_A, _request([{"product_id": foreign.id, "quantity": 1}]))
    with pytest.raises(ValidationFailed) as mixed:
        _intake(db).create(
            TENANT_A,
            _request(
                [
                    {"product_id": catalog["coca"].id, "quantity": 1},
                    {"product_id": foreign.id, "quantity": 1},
                ]
            ),
        )

    assert only_foreign.value.message == "Nenhum produto encontrado"
    assert mixed.value.message == f"Produto {foreign.id} não encontrado"
    assert db.query(Order).count() == 0


def test_variation_must_belong_to_product(db, catalog):
    items = [{"product_id": catalog["coca"].id, "quantity": 1, "variation_id": catalog["duplo"].id}]

    with pytest.raises(ValidationFailed) as exc:
        _intake(db).create(TENANT_A, _request(items))

    assert exc.value.message == "Variação não pertence ao produto Coca-Cola"


def test_unknown_variation_and_extra(db, catalog):
    unknown_variation = [{"product_id": catalog["x_burger"].id, "quantity": 1, "variation_id": "v-x"}]
    unknown_extra = [{"product_id": catalog["x_burger"].id, "quantity": 1, "extras": ["e-x"]}]

    with pytest.raises(ValidationFailed) as variation_exc:
        _intake(db).create(TENANT_A, _request(unknown_variation))
    with pytest.raises(ValidationFailed) as extra_exc:
        _intake(db).create(TENANT_A, _request(unknown_extra))

    assert variation_exc.value.message == "Variação v-x não encontrada"
    assert extra_exc.value.message == "Extra e-x não encontrado"


def test_unavailable_variation_and_extra(db, catalog):
    catalog["duplo"].is_available = False
    catalog["bacon"].is_available = False
    db.commit()

    with pytest.raises(ValidationFailed) as variation_exc:
        _intake(db).create(
            TENANT_A,
            _request([{"product_id": catalog["x_burger"].id, "quantity": 1, "variation_id": catalog["duplo"].id}]),
        )
    with pytest.raises(ValidationFailed) as extra_exc:
        _intake(db).create(
            TENANT_A,
            _request([{"product_id": catalog["x_burger"].id, "quantity": 1, "extras": [catalog["bacon"].id]}]),
        )

    assert variation_exc.value.message == 'Variação "Duplo" está indisponível'
    assert extra_exc.value.message == 'Extra "Bacon" está indisponível'


def test_extra_must_belong_to_product(db, catalog):
    items = [{"product_id": catalog["coca"].id, "quantity": 1, "extras": [catalog["bacon"].id]}]

    with pytest.raises(ValidationFailed) as exc:
        _intake(db).create(TENANT_A, _request(items))

    assert exc.value.message == 'Extra "Bacon" não pertence ao produto Coca-Cola'


def test_order_to_dict_nests_items_and_extras(db, catalog):
    items = [
        {
            "product_id": [catalog["x_burger"].id],
            "quantity": [1],
            "extras": [[catalog["bacon"].id]],
        }
    ]
    created = _intake(db).create(TENANT_A, _request(items))

    data = order_to_dict(db.get(Order, created.order_id))

    assert data["total_amount"] == 28.0
    assert len(data["order_items"]) == 1
    item = data["order_items"][0]
    assert (item["product_name"], item["product_price"], item["subtotal"]) == ("X-Burger", 25.0, 28.0)
    assert [e["extra_name"] for e in item["order_item_extras"]] == ["Bacon"]
