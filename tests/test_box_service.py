"""
Test box, location and QR code consistency
"""
import logging
import uuid

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from boxkeeper.core.errors import (
    BoxNotFoundError,
    InvalidInputError,
    LocationNotFoundError,
    MembershipError,
    OperationFailedError,
    QrCodeAlreadyAssignedError,
    QrCodeNotFoundError,
    WorkspaceMismatchError,
)
from boxkeeper.models.qr_code import QrCode, QrCodeStatus
from boxkeeper.schemas.box import BoxCreate, BoxUpdate, BoxFilter, MAX_TAGS
from boxkeeper.schemas.location import LocationCreate
from boxkeeper.schemas.qr_code import QrCodeBatchCreate
from boxkeeper.services.box_service import BoxAssignmentService
from boxkeeper.services.location_service import LocationHierarchyService
from boxkeeper.services.qr_code_service import QrCodeService
from boxkeeper.services.qr_code_store import QrCodeStore


async def _codes(db_session, user_id, workspace, quantity):
    return await QrCodeService(db_session).generate_batch(
        user_id, QrCodeBatchCreate(workspace_id=workspace.id, quantity=quantity)
    )


async def _location(db_session, user_id, workspace, name):
    return await LocationHierarchyService(db_session).create_location(
        user_id, LocationCreate(workspace_id=workspace.id, name=name)
    )


async def _fresh_code(db_session, qr_code_id):
    return await QrCodeStore(db_session).get_by_id(qr_code_id)


class TestCreateBox:
    """Test box creation."""

    @pytest.mark.asyncio
    async def test_scenario_qr_code_single_owner(self, db_session, workspace, member_id):
        """A code claimed by one box cannot be claimed by another."""
        codes = await _codes(db_session, member_id, workspace, 3)
        assert [code.status for code in codes] == [QrCodeStatus.GENERATED] * 3
        code_id = codes[0].id

        service = BoxAssignmentService(db_session)
        box1 = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=code_id)
        )
        assert box1.qr_code_id == code_id
        assert box1.qr_code.short_id == codes[0].short_id

        claimed = await _fresh_code(db_session, code_id)
        assert claimed.status == QrCodeStatus.ASSIGNED
        assert claimed.box_id == box1.id

        with pytest.raises(QrCodeAlreadyAssignedError):
            await service.create_box(
                member_id, BoxCreate(workspace_id=workspace.id, name="Box2", qr_code_id=code_id)
            )

        boxes = await service.list_boxes(member_id, BoxFilter(workspace_id=workspace.id))
        assert [box.name for box in boxes] == ["Box1"]

    @pytest.mark.asyncio
    async def test_plain_box(self, db_session, workspace, member_id):
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id,
            BoxCreate(workspace_id=workspace.id, name="  Winter clothes ", tags=[" wool ", "", "winter"]),
        )

        assert box.name == "Winter clothes"
        assert box.tags == ["wool", "winter"]
        assert len(box.short_id) == 10
        assert box.short_id.isalnum()
        assert box.location is None
        assert box.qr_code_id is None

    @pytest.mark.asyncio
    async def test_box_in_location(self, db_session, workspace, member_id):
        attic = await _location(db_session, member_id, workspace, "Attic")
        box = await BoxAssignmentService(db_session).create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", location_id=attic.id)
        )

        assert box.location_id == attic.id
        assert box.location.path == "root.attic"

    @pytest.mark.asyncio
    async def test_printed_code_can_be_claimed(self, db_session, workspace, member_id):
        codes = await _codes(db_session, member_id, workspace, 1)
        await QrCodeService(db_session).mark_printed(member_id, workspace.id, [codes[0].id])

        box = await BoxAssignmentService(db_session).create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=codes[0].id)
        )

        claimed = await _fresh_code(db_session, codes[0].id)
        assert claimed.status == QrCodeStatus.ASSIGNED
        assert claimed.box_id == box.id

    @pytest.mark.asyncio
    async def test_unknown_qr_code(self, db_session, workspace, member_id):
        with pytest.raises(QrCodeNotFoundError):
            await BoxAssignmentService(db_session).create_box(
                member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=uuid.uuid4())
            )

    @pytest.mark.asyncio
    async def test_qr_code_from_other_workspace(self, db_session, workspace, other_workspace, member_id):
        codes = await _codes(db_session, member_id, other_workspace, 1)

        with pytest.raises(WorkspaceMismatchError) as exc_info:
            await BoxAssignmentService(db_session).create_box(
                member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=codes[0].id)
            )
        assert exc_info.value.resource == "qr_code"

    @pytest.mark.asyncio
    async def test_unknown_location(self, db_session, workspace, member_id):
        with pytest.raises(LocationNotFoundError):
            await BoxAssignmentService(db_session).create_box(
                member_id, BoxCreate(workspace_id=workspace.id, name="Box1", location_id=uuid.uuid4())
            )

    @pytest.mark.asyncio
    async def test_deleted_location(self, db_session, workspace, member_id):
        attic = await _location(db_session, member_id, workspace, "Attic")
        await LocationHierarchyService(db_session).delete_location(member_id, attic.id)

        with pytest.raises(LocationNotFoundError):
            await BoxAssignmentService(db_session).create_box(
                member_id, BoxCreate(workspace_id=workspace.id, name="Box1", location_id=attic.id)
            )

    @pytest.mark.asyncio
    async def test_location_from_other_workspace(self, db_session, workspace, other_workspace, member_id):
        office = await _location(db_session, member_id, other_workspace, "Office")

        with pytest.raises(WorkspaceMismatchError) as exc_info:
            await BoxAssignmentService(db_session).create_box(
                member_id, BoxCreate(workspace_id=workspace.id, name="Box1", location_id=office.id)
            )
        assert exc_info.value.resource == "location"

    @pytest.mark.asyncio
    async def test_non_member_rejected(self, db_session, workspace, outsider_id):
        with pytest.raises(MembershipError):
            await BoxAssignmentService(db_session).create_box(
                outsider_id, BoxCreate(workspace_id=workspace.id, name="Box1")
            )

    @pytest.mark.asyncio
    async def test_losing_a_claim_race_rolls_back(self, db_session, workspace, member_id, monkeypatch):
        """The pre-check saw a free code but another box claimed it before the update."""
        codes = await _codes(db_session, member_id, workspace, 1)
        code_id = codes[0].id
        short_id = codes[0].short_id
        workspace_id = workspace.id

        service = BoxAssignmentService(db_session)
        winner = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace_id, name="Winner", qr_code_id=code_id)
        )
        winner_id = winner.id

        async def stale_get_by_id(self, qr_code_id):
            return QrCode(
                id=qr_code_id,
                workspace_id=workspace_id,
                short_id=short_id,
                status=QrCodeStatus.GENERATED,
                box_id=None,
            )

        monkeypatch.setattr(QrCodeStore, "get_by_id", stale_get_by_id)

        with pytest.raises(QrCodeAlreadyAssignedError):
            await service.create_box(
                member_id, BoxCreate(workspace_id=workspace_id, name="Loser", qr_code_id=code_id)
            )

        monkeypatch.undo()
        boxes = await service.list_boxes(member_id, BoxFilter(workspace_id=workspace_id))
        assert [box.name for box in boxes] == ["Winner"]
        held = await _fresh_code(db_session, code_id)
        assert held.box_id == winner_id

    @pytest.mark.asyncio
    async def test_storage_failure_is_opaque_and_rolled_back(
        self, db_session, workspace, member_id, monkeypatch, caplog
    ):
        """A driver error mid-operation leaves no box behind and leaks no driver text."""
        codes = await _codes(db_session, member_id, workspace, 1)
        code_id = codes[0].id
        workspace_id = workspace.id

        async def failing_claim(self, qr_code_id, box_id):
            raise OperationalError("UPDATE qr_codes", {}, Exception("connection lost"))

        monkeypatch.setattr(QrCodeStore, "claim", failing_claim)

        service = BoxAssignmentService(db_session)
        with caplog.at_level(logging.ERROR, logger="boxkeeper.services.transaction"):
            with pytest.raises(OperationFailedError) as exc_info:
                await service.create_box(
                    member_id, BoxCreate(workspace_id=workspace_id, name="Box1", qr_code_id=code_id)
                )

        assert "connection" not in exc_info.value.message
        assert exc_info.value.message == OperationFailedError.default_message
        assert "create_box failed" in caplog.text

        monkeypatch.undo()
        assert await service.list_boxes(member_id, BoxFilter(workspace_id=workspace_id)) == []
        code = await _fresh_code(db_session, code_id)
        assert code.box_id is None
        assert code.status == QrCodeStatus.GENERATED


class TestUpdateBox:
    """Test box updates and QR code reassignment."""

    @pytest.mark.asyncio
    async def test_update_fields(self, db_session, workspace, member_id):
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", tags=["a"])
        )

        updated = await service.update_box(
            member_id, box.id, BoxUpdate(name="Kitchen stuff", description="Plates", tags=["kitchen"])
        )

        assert updated.name == "Kitchen stuff"
        assert updated.description == "Plates"
        assert updated.tags == ["kitchen"]
        assert updated.short_id == box.short_id

    @pytest.mark.asyncio
    async def test_move_and_unassign_location(self, db_session, workspace, member_id):
        attic = await _location(db_session, member_id, workspace, "Attic")
        garage = await _location(db_session, member_id, workspace, "Garage")
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", location_id=attic.id)
        )

        moved = await service.update_box(member_id, box.id, BoxUpdate(location_id=garage.id))
        assert moved.location_id == garage.id
        assert moved.location.name == "Garage"

        untouched = await service.update_box(member_id, box.id, BoxUpdate(name="Box 1"))
        assert untouched.location_id == garage.id

        unassigned = await service.update_box(member_id, box.id, BoxUpdate(location_id=None))
        assert unassigned.location_id is None

    @pytest.mark.asyncio
    async def test_move_to_deleted_location(self, db_session, workspace, member_id):
        attic = await _location(db_session, member_id, workspace, "Attic")
        await LocationHierarchyService(db_session).delete_location(member_id, attic.id)
        service = BoxAssignmentService(db_session)
        box = await service.create_box(member_id, BoxCreate(workspace_id=workspace.id, name="Box1"))

        with pytest.raises(LocationNotFoundError):
            await service.update_box(member_id, box.id, BoxUpdate(location_id=attic.id))

    @pytest.mark.asyncio
    async def test_reassigning_same_code_is_a_no_op(self, db_session, workspace, member_id):
        codes = await _codes(db_session, member_id, workspace, 1)
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=codes[0].id)
        )

        updated = await service.update_box(member_id, box.id, BoxUpdate(qr_code_id=codes[0].id))

        assert updated.qr_code_id == codes[0].id
        held = await _fresh_code(db_session, codes[0].id)
        assert held.status == QrCodeStatus.ASSIGNED
        assert held.box_id == box.id

    @pytest.mark.asyncio
    async def test_null_releases_code(self, db_session, workspace, member_id):
        codes = await _codes(db_session, member_id, workspace, 1)
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=codes[0].id)
        )

        updated = await service.update_box(member_id, box.id, BoxUpdate(qr_code_id=None))

        assert updated.qr_code_id is None
        released = await _fresh_code(db_session, codes[0].id)
        assert released.status == QrCodeStatus.GENERATED
        assert released.box_id is None

    @pytest.mark.asyncio
    async def test_new_code_releases_previous_one(self, db_session, workspace, member_id):
        codes = await _codes(db_session, member_id, workspace, 2)
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=codes[0].id)
        )

        updated = await service.update_box(member_id, box.id, BoxUpdate(qr_code_id=codes[1].id))

        assert updated.qr_code_id == codes[1].id
        previous = await _fresh_code(db_session, codes[0].id)
        assert previous.status == QrCodeStatus.GENERATED
        assert previous.box_id is None
        current = await _fresh_code(db_session, codes[1].id)
        assert current.status == QrCodeStatus.ASSIGNED
        assert current.box_id == box.id

    @pytest.mark.asyncio
    async def test_code_held_by_other_box(self, db_session, workspace, member_id):
        codes = await _codes(db_session, member_id, workspace, 2)
        first_code_id, second_code_id = codes[0].id, codes[1].id
        service = BoxAssignmentService(db_session)
        await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=first_code_id)
        )
        box2 = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box2", qr_code_id=second_code_id)
        )
        box2_id = box2.id

        with pytest.raises(QrCodeAlreadyAssignedError):
            await service.update_box(member_id, box2_id, BoxUpdate(qr_code_id=first_code_id))

        # Box2 keeps its own code
        unchanged = await service.get_box(member_id, box2_id)
        assert unchanged.qr_code_id == second_code_id

    @pytest.mark.asyncio
    async def test_update_hidden_from_non_member(self, db_session, workspace, member_id, outsider_id):
        service = BoxAssignmentService(db_session)
        box = await service.create_box(member_id, BoxCreate(workspace_id=workspace.id, name="Box1"))

        with pytest.raises(BoxNotFoundError):
            await service.update_box(outsider_id, box.id, BoxUpdate(name="Mine"))


class TestDeleteBox:
    """Test box deletion."""

    @pytest.mark.asyncio
    async def test_delete_releases_code(self, db_session, workspace, member_id):
        codes = await _codes(db_session, member_id, workspace, 1)
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=codes[0].id)
        )
        box_id = box.id

        await service.delete_box(member_id, box_id)

        released = await _fresh_code(db_session, codes[0].id)
        assert released.status == QrCodeStatus.GENERATED
        assert released.box_id is None
        with pytest.raises(BoxNotFoundError):
            await service.get_box(member_id, box_id)

    @pytest.mark.asyncio
    async def test_released_code_can_be_reused(self, db_session, workspace, member_id):
        codes = await _codes(db_session, member_id, workspace, 1)
        service = BoxAssignmentService(db_session)
        box = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box1", qr_code_id=codes[0].id)
        )
        await service.delete_box(member_id, box.id)

        again = await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Box2", qr_code_id=codes[0].id)
        )
        assert again.qr_code_id == codes[0].id

    @pytest.mark.asyncio
    async def test_delete_hidden_from_non_member(self, db_session, workspace, member_id, outsider_id):
        service = BoxAssignmentService(db_session)
        box = await service.create_box(member_id, BoxCreate(workspace_id=workspace.id, name="Box1"))
        box_id = box.id

        with pytest.raises(BoxNotFoundError):
            await service.delete_box(outsider_id, box_id)
        assert (await service.get_box(member_id, box_id)).name == "Box1"


class TestBoxQueries:
    """Test listing, searching and the duplicate name warning."""

    @pytest.mark.asyncio
    async def test_filters(self, db_session, workspace, member_id):
        attic = await _location(db_session, member_id, workspace, "Attic")
        service = BoxAssignmentService(db_session)
        await service.create_box(
            member_id,
            BoxCreate(workspace_id=workspace.id, name="Books", description="Paperbacks", location_id=attic.id),
        )
        await service.create_box(
            member_id, BoxCreate(workspace_id=workspace.id, name="Tools", description="Screwdrivers")
        )

        async def names(**filters):
            boxes = await service.list_boxes(member_id, BoxFilter(workspace_id=workspace.id, **filters))
            return sorted(box.name for box in boxes)

        assert await names() == ["Books", "Tools"]
        assert await names(q="paper") == ["Books"]
        assert await names(q="TOOL") == ["Tools"]
        assert await names(location_id=attic.id) == ["Books"]
        assert await names(is_assigned=True) == ["Books"]
        assert await names(is_assigned=False) == ["Tools"]
        assert len(await names(limit=1)) == 1

    @pytest.mark.asyncio
    async def test_page_size_limit(self, db_session, workspace, member_id):
        with pytest.raises(InvalidInputError):
            await BoxAssignmentService(db_session).list_boxes(
                member_id, BoxFilter(workspace_id=workspace.id, limit=500)
            )

    @pytest.mark.asyncio
    async def test_list_requires_membership(self, db_session, workspace, outsider_id):
        with pytest.raises(MembershipError):
            await BoxAssignmentService(db_session).list_boxes(
                outsider_id, BoxFilter(workspace_id=workspace.id)
            )

    @pytest.mark.asyncio
    async def test_duplicate_name_warning(self, db_session, workspace, member_id):
        service = BoxAssignmentService(db_session)
        box = await service.create_box(member_id, BoxCreate(workspace_id=workspace.id, name="Books"))

        result = await service.check_duplicate_name(member_id, workspace.id, "books")
        assert result.is_duplicate is True
        assert result.count == 1

        result = await service.check_duplicate_name(member_id, workspace.id, "Books", exclude_box_id=box.id)
        assert result.is_duplicate is False

        # Duplicates are allowed, the check only warns
        await service.create_box(member_id, BoxCreate(workspace_id=workspace.id, name="Books"))
        result = await service.check_duplicate_name(member_id, workspace.id, "Books")
        assert result.count == 2


class TestBoxSchemas:
    """Test request validation."""

    def test_too_many_tags(self):
        with pytest.raises(ValidationError):
            BoxCreate(workspace_id=uuid.uuid4(), name="Box", tags=[f"t{i}" for i in range(MAX_TAGS + 1)])

    def test_tag_too_long(self):
        with pytest.raises(ValidationError):
            BoxUpdate(tags=["x" * 51])

    def test_blank_name(self):
        with pytest.raises(ValidationError):
            BoxCreate(workspace_id=uuid.uuid4(), name="   ")

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            BoxUpdate(short_id="abc")
