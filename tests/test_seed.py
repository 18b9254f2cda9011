"""
Unit tests for the sample data generator.
"""

import pytest

from traffic_console.config import DEFAULT_USER_CONFIGS, SAMPLE_CITIES
from traffic_console.entities import ENTITIES
from traffic_console.seed import COUNTS, generate_dataset


@pytest.fixture(scope="module")
def dataset():
    return generate_dataset(seed=7)


def test_every_entity_is_generated(dataset):
    assert set(dataset) == set(ENTITIES)
    for name, rows in dataset.items():
        assert len(rows) == COUNTS[name]


def test_same_seed_same_data(dataset):
    assert generate_dataset(seed=7) == dataset


def test_different_seed_different_data(dataset):
    assert generate_dataset(seed=8)["licenses"] != dataset["licenses"]


def test_ids_are_unique(dataset):
    for rows in dataset.values():
        ids = [r["id"] for r in rows]
        assert len(ids) == len(set(ids))


def test_scoped_entities_use_known_cities(dataset):
    for name in ("licenses", "vehicles", "violations", "authorities"):
        assert {r["city"] for r in dataset[name]} <= set(SAMPLE_CITIES)


def test_violations_follow_their_license(dataset):
    by_number = {r["licenseNumber"]: r for r in dataset["licenses"]}
    for violation in dataset["violations"]:
        lic = by_number[violation["licenseNumber"]]
        assert violation["city"] == lic["city"]
        assert violation["violatorName"] == lic["holderName"]


def test_paid_violations_carry_payment(dataset):
    for violation in dataset["violations"]:
        assert ("paymentDate" in violation) == (violation["status"] == "paid")


def test_required_fields_are_present(dataset):
    for name, rows in dataset.items():
        required = ENTITIES[name].required_fields
        for row in rows:
            missing = [f for f in required if row.get(f) in (None, "")]
            assert not missing


def test_notifications_belong_to_known_wallets(dataset):
    wallets = {u["address"] for u in DEFAULT_USER_CONFIGS}
    assert {n["walletAddress"] for n in dataset["notifications"]} <= wallets
