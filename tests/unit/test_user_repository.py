"""Unit tests for InMemoryUserRepository."""

import asyncio

import pytest

from app.exceptions import DuplicateUserError
from app.models.user import User
from app.repositories.user_repository import InMemoryUserRepository


@pytest.fixture
def repository():
    """Create an empty repository."""
    return InMemoryUserRepository()


def make_user(email="tech@shop.com", name="Alex"):
    return User(email=email, password_hash="$2b$04$hash", name=name)


class TestInsert:
    """Test cases for insert method."""

    @pytest.mark.asyncio
    async def test_insert_success(self, repository):
        """Test successful user insert."""
        # Setup
        user = make_user()

        # Execute
        stored = await repository.insert(user)

        # Verify
        assert stored is user
        assert stored.id.startswith("user_")
        assert await repository.get_by_email("tech@shop.com") is user

    @pytest.mark.asyncio
    async def test_insert_duplicate_email(self, repository):
        """Test a second user with the same email is rejected."""
        # Setup
        await repository.insert(make_user())

        # Execute & Verify
        with pytest.raises(DuplicateUserError, match="already exists"):
            await repository.insert(make_user(name="Someone Else"))

        assert (await repository.get_by_email("tech@shop.com")).name == "Alex"

    @pytest.mark.asyncio
    async def test_insert_email_is_case_sensitive(self, repository):
        """Test emails differing only in case are distinct users."""
        await repository.insert(make_user("tech@shop.com"))
        await repository.insert(make_user("Tech@shop.com"))

        assert (await repository.get_by_email("tech@shop.com")).email == "tech@shop.com"
        assert (await repository.get_by_email("Tech@shop.com")).email == "Tech@shop.com"

    @pytest.mark.asyncio
    async def test_concurrent_inserts_single_winner(self, repository):
        """Test concurrent inserts for one email store exactly one user."""
        # Execute
        results = await asyncio.gather(
            *(repository.insert(make_user()) for _ in range(5)),
            return_exceptions=True
        )

        # Verify
        stored = [r for r in results if isinstance(r, User)]
        rejected = [r for r in results if isinstance(r, DuplicateUserError)]
        assert len(stored) == 1
        assert len(rejected) == 4
        assert await repository.get_by_email("tech@shop.com") is stored[0]


class TestGetByEmail:
    """Test cases for get_by_email method."""

    @pytest.mark.asyncio
    async def test_get_by_email_found(self, repository):
        """Test retrieving a stored user."""
        user = await repository.insert(make_user())

        assert await repository.get_by_email("tech@shop.com") == user

    @pytest.mark.asyncio
    async def test_get_by_email_not_found(self, repository):
        """Test retrieving an unknown email."""
        assert await repository.get_by_email("nobody@shop.com") is None


def test_public_dict_hides_password_hash():
    """Test the public view never exposes the hash."""
    public = make_user().to_public_dict()

    assert set(public) == {"id", "email", "name"}
