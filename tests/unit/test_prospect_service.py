"""Tests du service prospects (création, doublons, périmètre, mise à jour)."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.core.exceptions import (
    DuplicateProspectError,
    ForbiddenError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from app.core.security import CurrentUser
from app.models.organization import City, Segment
from app.models.prospect import Prospect
from app.schemas.prospect import (
    ProspectCreate,
    ProspectImportLine,
    ProspectImportRequest,
    ProspectReinject,
    ProspectUpdate,
)
from app.services import prospect_service
from app.services.phone_service import seed_country_phone_config

NOW = datetime(2026, 3, 10, 14, 0, tzinfo=UTC)

AGENT = CurrentUser(
    id="user-1", username="agent", role="commercial", segment_ids=["seg-1"], city_ids=["city-1"]
)
ADMIN = CurrentUser(id="admin-1", username="admin", role="admin")


@pytest.fixture
def mock_publish():
    """Mock event publishing pour tous les tests."""
    with patch("app.services.prospect_service.publish", new_callable=AsyncMock) as mocked:
        yield mocked


@pytest.fixture
async def referential(db_session):
    db_session.add_all(
        [
            Segment(id="seg-1", name="Prolean"),
            Segment(id="seg-2", name="Diamond"),
            City(id="city-1", name="Casablanca", segment_id="seg-1"),
            City(id="city-2", name="Rabat", segment_id="seg-1"),
        ]
    )
    await db_session.commit()
    await seed_country_phone_config(db_session)


def _create(**overrides) -> ProspectCreate:
    values = {"phone": "06 12 34 56 78", "segment_id": "seg-1", "ville_id": "city-1"}
    values.update(overrides)
    return ProspectCreate(**values)


class TestCreateProspect:
    async def test_creates_new_prospect(self, db_session, referential, mock_publish):
        resolution = await prospect_service.create_prospect(
            db_session, _create(nom="EL-MEHDI", prenom="sara", cin="ab 123456"), AGENT, NOW
        )

        assert resolution.action == "created"
        assert resolution.reinjected is False
        assert resolution.reason == "Prospect créé avec succès"

        prospect = resolution.prospect
        assert len(prospect.id) == 8 and prospect.id.isdigit()
        assert prospect.phone_raw == "06 12 34 56 78"
        assert prospect.phone_international == "+212612345678"
        assert prospect.country == "Morocco"
        assert prospect.nom == "El-Mehdi"
        assert prospect.prenom == "Sara"
        assert prospect.cin == "AB123456"
        assert prospect.statut_contact == "non contacté"
        assert prospect.decision_nettoyage == "laisser"
        assert prospect.created_by == "user-1"

        mock_publish.assert_awaited_once()
        subject, payload = mock_publish.await_args.args
        assert subject == "gestion.prospect.created"
        assert payload["prospect_id"] == prospect.id

    async def test_segment_is_required(self, db_session, referential, mock_publish):
        with pytest.raises(ValidationError) as exc_info:
            await prospect_service.create_prospect(
                db_session, _create(segment_id=None), AGENT, NOW
            )

        assert exc_info.value.error == "Veuillez sélectionner un segment"
        mock_publish.assert_not_awaited()

    async def test_segment_out_of_scope(self, db_session, referential, mock_publish):
        with pytest.raises(ForbiddenError) as exc_info:
            await prospect_service.create_prospect(
                db_session, _create(segment_id="seg-2", ville_id=None), AGENT, NOW
            )

        assert exc_info.value.code == "OUT_OF_SCOPE"
        assert exc_info.value.error == (
            "Vous ne pouvez pas créer un prospect en dehors de votre scope"
        )

    async def test_city_out_of_scope(self, db_session, referential, mock_publish):
        with pytest.raises(ForbiddenError):
            await prospect_service.create_prospect(
                db_session, _create(ville_id="city-2"), AGENT, NOW
            )

    async def test_city_is_required_for_non_admin(self, db_session, referential, mock_publish):
        with pytest.raises(ForbiddenError) as exc_info:
            await prospect_service.create_prospect(
                db_session, _create(ville_id=None), AGENT, NOW
            )

        assert exc_info.value.code == "OUT_OF_SCOPE"
        mock_publish.assert_not_awaited()

    async def test_reinjection_with_unknown_city(self, db_session, referential, mock_publish):
        await prospect_service.create_prospect(
            db_session, _create(), ADMIN, NOW - timedelta(days=3)
        )

        with pytest.raises(InvalidReferenceError) as exc_info:
            await prospect_service.create_prospect(
                db_session, _create(ville_id="nope"), ADMIN, NOW
            )

        assert exc_info.value.details == ["Ville introuvable: nope"]
        prospect = (await db_session.execute(select(Prospect))).scalars().one()
        assert prospect.ville_id == "city-1"
        assert prospect.statut_contact == "non contacté"

    async def test_publish_failure_keeps_created_prospect(self, db_session, referential):
        with patch(
            "app.services.prospect_service.publish",
            new=AsyncMock(side_effect=ConnectionError("Redis indisponible")),
        ):
            resolution = await prospect_service.create_prospect(
                db_session, _create(), AGENT, NOW
            )

        assert resolution.action == "created"
        count = await db_session.scalar(select(func.count()).select_from(Prospect))
        assert count == 1

    @patch("app.core.events_redis.asyncio.sleep", new_callable=AsyncMock)
    @patch("app.core.events_redis.redis_client")
    async def test_redis_down_after_commit(self, mock_redis, mock_sleep, db_session, referential):
        mock_redis.publish = AsyncMock(side_effect=ConnectionError("Connection refused"))

        resolution = await prospect_service.create_prospect(db_session, _create(), AGENT, NOW)

        assert resolution.action == "created"
        assert mock_redis.publish.await_count == 3
        with pytest.raises(DuplicateProspectError):
            await prospect_service.create_prospect(
                db_session, _create(), AGENT, NOW + timedelta(minutes=1)
            )

    async def test_invalid_phone(self, db_session, referential, mock_publish):
        with pytest.raises(ValidationError) as exc_info:
            await prospect_service.create_prospect(
                db_session, _create(phone="0612"), AGENT, NOW
            )

        assert exc_info.value.code == "INVALID_PHONE"
        assert exc_info.value.error.startswith("Longueur invalide pour Morocco")

    async def test_recent_duplicate_is_rejected(self, db_session, referential, mock_publish):
        first = await prospect_service.create_prospect(db_session, _create(), AGENT, NOW)

        with pytest.raises(DuplicateProspectError) as exc_info:
            await prospect_service.create_prospect(
                db_session, _create(phone="+212 612 345 678"), AGENT, NOW + timedelta(hours=1)
            )

        body = exc_info.value.to_dict()
        assert body["code"] == "DUPLICATE_PROSPECT"
        assert body["data"]["id"] == first.prospect.id
        assert body["details"] == {"reason": "Prospect injecté il y a moins de 24 heures"}

    async def test_same_phone_in_other_segment_is_a_new_prospect(
        self, db_session, referential, mock_publish
    ):
        await prospect_service.create_prospect(db_session, _create(), ADMIN, NOW)

        other = await prospect_service.create_prospect(
            db_session, _create(segment_id="seg-2", ville_id=None), ADMIN, NOW
        )

        assert other.action == "created"
        count = await db_session.scalar(select(func.count()).select_from(Prospect))
        assert count == 2

    async def test_old_duplicate_is_reinjected(self, db_session, referential, mock_publish):
        first = await prospect_service.create_prospect(
            db_session, _create(nom="Alami"), AGENT, NOW - timedelta(days=2)
        )

        resolution = await prospect_service.create_prospect(
            db_session, _create(nom="bennani"), AGENT, NOW
        )

        assert resolution.action == "reinjected"
        assert resolution.reinjected is True
        assert resolution.prospect.id == first.prospect.id
        assert resolution.prospect.nom == "Alami, Bennani"
        assert resolution.reason.startswith("Prospect réinjecté: Ancien prospect (> 24h)")
        assert mock_publish.await_args.args[0] == "gestion.prospect.reinjected"

    async def test_unknown_assigned_user(self, db_session, referential, mock_publish):
        with pytest.raises(InvalidReferenceError) as exc_info:
            await prospect_service.create_prospect(
                db_session, _create(assigned_to="ghost"), ADMIN, NOW
            )

        assert exc_info.value.details == ["Utilisateur assigné introuvable: ghost"]

    async def test_unknown_segment_for_admin(self, db_session, referential, mock_publish):
        with pytest.raises(InvalidReferenceError):
            await prospect_service.create_prospect(
                db_session, _create(segment_id="seg-404", ville_id=None), ADMIN, NOW
            )


class TestGenerateUniqueProspectId:
    async def test_falls_back_to_timestamp_after_collisions(self, db_session, referential):
        db_session.add(
            Prospect(
                id="12345678",
                phone_raw="0600000000",
                phone_international="+212600000000",
                segment_id="seg-1",
            )
        )
        await db_session.commit()

        with patch("app.services.prospect_service.random.randint", return_value=12345678):
            prospect_id = await prospect_service.generate_unique_prospect_id(db_session)

        assert prospect_id != "12345678"
        assert len(prospect_id) == 8


class TestGetAndUpdateProspect:
    async def test_get_unknown_prospect(self, db_session, referential):
        with pytest.raises(NotFoundError) as exc_info:
            await prospect_service.get_prospect(db_session, "00000000", AGENT)

        assert exc_info.value.error == "Prospect non trouvé"

    async def test_get_prospect_out_of_scope(self, db_session, referential, mock_publish):
        created = await prospect_service.create_prospect(
            db_session, _create(segment_id="seg-2", ville_id=None), ADMIN, NOW
        )

        with pytest.raises(ForbiddenError) as exc_info:
            await prospect_service.get_prospect(db_session, created.prospect.id, AGENT)

        assert exc_info.value.error == "Prospect hors de votre scope"

    async def test_update_recomputes_cleaning_decision(
        self, db_session, referential, mock_publish
    ):
        created = await prospect_service.create_prospect(db_session, _create(), AGENT, NOW)

        updated = await prospect_service.update_prospect(
            db_session,
            created.prospect.id,
            ProspectUpdate(statut_contact="contacté sans rdv", prenom="YOUSSEF"),
            AGENT,
            NOW,
        )

        assert updated.statut_contact == "contacté sans rdv"
        assert updated.prenom == "Youssef"
        assert updated.decision_nettoyage == "supprimer"

    async def test_update_can_clear_appointment(self, db_session, referential, mock_publish):
        created = await prospect_service.create_prospect(db_session, _create(), AGENT, NOW)
        await prospect_service.update_prospect(
            db_session,
            created.prospect.id,
            ProspectUpdate(
                statut_contact="contacté avec rdv",
                date_rdv=NOW + timedelta(days=3),
                rdv_centre_ville_id="city-1",
            ),
            AGENT,
            NOW,
        )

        updated = await prospect_service.update_prospect(
            db_session,
            created.prospect.id,
            ProspectUpdate(date_rdv=None, rdv_centre_ville_id=None),
            AGENT,
            NOW,
        )

        assert updated.date_rdv is None
        assert updated.rdv_centre_ville_id is None
        assert updated.statut_contact == "contacté avec rdv"

    async def test_update_rejects_unknown_rdv_center(self, db_session, referential, mock_publish):
        created = await prospect_service.create_prospect(db_session, _create(), AGENT, NOW)

        with pytest.raises(InvalidReferenceError):
            await prospect_service.update_prospect(
                db_session,
                created.prospect.id,
                ProspectUpdate(rdv_centre_ville_id="city-404"),
                AGENT,
                NOW,
            )


class TestManualReinjection:
    async def test_reinject_without_delay(self, db_session, referential, mock_publish):
        created = await prospect_service.create_prospect(db_session, _create(), AGENT, NOW)

        prospect = await prospect_service.reinject(
            db_session,
            created.prospect.id,
            ProspectReinject(ville_id="city-2", nom="ALAMI"),
            AGENT,
            NOW + timedelta(hours=1),
        )

        assert prospect.ville_id == "city-2"
        assert prospect.historique_villes == "Casablanca"
        assert prospect.nom == "Alami"
        assert mock_publish.await_args.args[0] == "gestion.prospect.reinjected"

    async def test_reinject_unknown_city(self, db_session, referential, mock_publish):
        created = await prospect_service.create_prospect(db_session, _create(), AGENT, NOW)

        with pytest.raises(InvalidReferenceError):
            await prospect_service.reinject(
                db_session, created.prospect.id, ProspectReinject(ville_id="city-404"), AGENT, NOW
            )


class TestImportProspects:
    def _request(self, *lines, segment_id="seg-1") -> ProspectImportRequest:
        return ProspectImportRequest(
            segment_id=segment_id, lines=[ProspectImportLine(**line) for line in lines]
        )

    async def test_counts_each_outcome(self, db_session, referential, mock_publish):
        await prospect_service.create_prospect(
            db_session, _create(phone="0611111111"), ADMIN, NOW - timedelta(days=3)
        )
        await prospect_service.create_prospect(
            db_session, _create(phone="0622222222"), ADMIN, NOW - timedelta(hours=2)
        )

        result = await prospect_service.import_prospects(
            db_session,
            self._request(
                {"phone": "0633333333", "ville": "casablanca", "nom": "ALAMI"},
                {"phone": "0611111111", "ville": "Rabat"},
                {"phone": "0622222222", "ville": "Casablanca"},
                {"phone": "0612", "ville": "Casablanca"},
                {"phone": "0644444444", "ville": "Tanger"},
            ),
            ADMIN,
            NOW,
        )

        assert result.summary.model_dump() == {"created": 1, "reinjected": 1, "errors": 3}
        assert [d.status for d in result.details] == [
            "created",
            "reinjected",
            "duplicate",
            "error",
            "error",
        ]
        assert result.details[2].error == "Numéro déjà existant"
        assert result.details[3].error.startswith("Longueur invalide pour Morocco")
        assert result.details[4].error == "Ville non existante dans le segment"

        created = await db_session.get(Prospect, result.details[0].prospect_id)
        assert created.nom == "Alami"
        assert created.ville_id == "city-1"
        assert created.phone_international == "+212633333333"

    async def test_same_number_twice_in_one_file(self, db_session, referential, mock_publish):
        result = await prospect_service.import_prospects(
            db_session,
            self._request(
                {"phone": "0633333333", "ville": "Casablanca"},
                {"phone": "+212 633 333 333", "ville": "Casablanca"},
            ),
            ADMIN,
            NOW,
        )

        assert [d.status for d in result.details] == ["created", "duplicate"]

    async def test_city_outside_agent_scope(self, db_session, referential, mock_publish):
        result = await prospect_service.import_prospects(
            db_session, self._request({"phone": "0633333333", "ville": "Rabat"}), AGENT, NOW
        )

        assert result.details[0].status == "error"
        assert result.details[0].error == "Ville hors de votre scope"

    async def test_segment_is_required(self, db_session, referential):
        with pytest.raises(ValidationError):
            await prospect_service.import_prospects(
                db_session,
                self._request({"phone": "0633333333", "ville": "Casablanca"}, segment_id=None),
                ADMIN,
                NOW,
            )

    async def test_segment_out_of_scope(self, db_session, referential):
        with pytest.raises(ForbiddenError):
            await prospect_service.import_prospects(
                db_session,
                self._request({"phone": "0633333333", "ville": "Casablanca"}, segment_id="seg-2"),
                AGENT,
                NOW,
            )
