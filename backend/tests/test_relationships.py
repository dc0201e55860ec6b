from __future__ import annotations

from decimal import Decimal

import pytest

from gymclub.core.errors import DuplicateEdge, InUse, NotFound, ValidationError
from gymclub.models.gym import ClubGym
from gymclub.services import clubs, gyms, ownership, relationships
from tests.testkit import create_club, create_gym, create_user


def test_one_edge_per_pair_until_disconnected(db):
    club = create_club(db)
    gym = create_gym(db)

    edge = relationships.connect(db, club.id, gym.id, "partnership")
    assert (edge.relationship_type, edge.status) == ("partnership", "active")

    with pytest.raises(DuplicateEdge):
        relationships.connect(db, club.id, gym.id, "ownership")

    relationships.disconnect(db, club.id, gym.id)
    assert db.get(ClubGym, edge.id) is None

    again = relationships.connect(db, club.id, gym.id, "ownership")
    assert again.relationship_type == "ownership"


def test_connect_validates_inputs(db):
    club = create_club(db)
    gym = create_gym(db)
    with pytest.raises(ValidationError):
        relationships.connect(db, club.id, gym.id, "sponsorship")
    with pytest.raises(NotFound):
        relationships.connect(db, 999, gym.id, "partnership")
    with pytest.raises(NotFound):
        relationships.connect(db, club.id, 999, "partnership")
    with pytest.raises(NotFound):
        relationships.disconnect(db, club.id, gym.id)


def test_type_change_keeps_the_edge(db):
    club = create_club(db)
    gym = create_gym(db)
    edge = relationships.connect(db, club.id, gym.id, "partnership")

    changed = relationships.update_relationship_type(db, club.id, gym.id, "franchise")

    assert changed.id == edge.id
    assert changed.created_at == edge.created_at
    assert changed.relationship_type == "franchise"
    with pytest.raises(NotFound):
        relationships.update_relationship_type(db, club.id, 4242, "franchise")


def test_listings_are_scoped_and_newest_first(db):
    club = create_club(db)
    other = create_club(db, "Other Club")
    north = create_gym(db, "North Gym", city="Lyon")
    south = create_gym(db, "South Gym")
    relationships.connect(db, club.id, north.id, "partnership")
    relationships.connect(db, club.id, south.id, "franchise")
    relationships.connect(db, other.id, north.id, "ownership")

    club_gyms = relationships.list_gyms_for_club(db, club.id)
    assert [g.gym_name for g in club_gyms] == ["South Gym", "North Gym"]
    assert club_gyms[1].city == "Lyon"

    gym_clubs = relationships.list_clubs_for_gym(db, north.id)
    assert [(c.club_name, c.relationship_type) for c in gym_clubs] == [
        ("Other Club", "ownership"),
        ("Iron Club", "partnership"),
    ]


def test_gym_created_for_a_club_gets_an_ownership_edge(db):
    club = create_club(db)
    gym = create_gym(db, club_id=club.id)

    assert [(c.club_id, c.relationship_type) for c in gym.clubs] == [(club.id, "ownership")]
    with pytest.raises(NotFound):
        create_gym(db, "Orphan Gym", club_id=31337)
    assert [g.name for g in gyms.list_gyms(db)] == [gym.name]


def test_deleting_a_gym_removes_its_edges(db):
    club = create_club(db)
    gym = create_gym(db, club_id=club.id)

    gyms.delete_gym(db, gym.id)

    assert relationships.list_gyms_for_club(db, club.id) == []
    with pytest.raises(NotFound):
        gyms.get_gym(db, gym.id)


def test_club_with_active_owners_cannot_be_deleted(db, identity_factory):
    club = create_club(db)
    create_gym(db, club_id=club.id)
    owner = create_user(db, identity_factory)
    stake = ownership.add_owner(db, club.id, owner.id, "owner", Decimal("100"))

    with pytest.raises(InUse):
        clubs.delete_club(db, club.id)

    ownership.remove_owner(db, club.id, stake.id)
    clubs.delete_club(db, club.id)
    with pytest.raises(NotFound):
        clubs.get_club(db, club.id)
    assert db.query(ClubGym).count() == 0
