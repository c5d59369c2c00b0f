"""
Book Keeper Backend - API Endpoint Tests
=========================================

What:  HTTP-level behavior through the real app: routing, credentials,
       access policies, response envelopes and error mapping.
How:   httpx AsyncClient over ASGITransport; one fresh database per test.

What we test:
    ✅ Root banner and health probe
    ✅ Register / login / credential failures (401) and duplicates (400)
    ✅ Self-or-admin user management, including the edit rule
    ✅ Catalog writes are admin-only; filterByCategory 404s when empty
    ✅ Full loan scenario: issue → pending list → approve → complete
"""

import pytest


async def _add_book(client, headers, **overrides):
    payload = {"name": "Dune", "author": "Frank Herbert", "language": "English"}
    payload.update(overrides)
    resp = await client.post("/api/book/add", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestRootAndHealth:

    @pytest.mark.asyncio
    async def test_root_banner(self, test_client):
        resp = await test_client.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Welcome to Book Keeper App."}

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        resp = await test_client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_responses_carry_request_id(self, test_client):
        resp = await test_client.get("/", headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"


class TestRegisterAndLogin:

    @pytest.mark.asyncio
    async def test_register_returns_user_without_password(self, test_client):
        resp = await test_client.post(
            "/api/user/register",
            json={"name": "Nia", "email": "nia@library.org", "password": "secret123", "contact": 5551234},
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "User created Successfully"
        assert body["data"]["role"] == "user"
        assert body["data"]["contact"] == "5551234"
        assert "password" not in body["data"]
        assert "createdAt" in body["data"]

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client, register_user):
        await register_user("nia@library.org")

        resp = await test_client.post(
            "/api/user/register",
            json={"name": "Nia 2", "email": "nia@library.org", "password": "secret123"},
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "duplicate_key"

    @pytest.mark.asyncio
    async def test_invalid_payload_is_400(self, test_client):
        resp = await test_client.post("/api/user/register", json={"email": "not-an-email"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_login_returns_token_and_user(self, test_client, register_user):
        user_id, _ = await register_user("nia@library.org")

        resp = await test_client.post(
            "/api/user/login", json={"email": "nia@library.org", "password": "secret123"}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["token"]
        assert body["data"]["id"] == user_id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client, register_user):
        await register_user("nia@library.org")

        resp = await test_client.post(
            "/api/user/login", json={"email": "nia@library.org", "password": "wrong-one"}
        )

        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid password"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, test_client):
        resp = await test_client.post(
            "/api/user/login", json={"email": "ghost@library.org", "password": "secret123"}
        )
        assert resp.status_code == 401


class TestCredentials:

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client, register_user):
        user_id, _ = await register_user("nia@library.org")

        resp = await test_client.get(f"/api/user/get/{user_id}")

        assert resp.status_code == 401
        assert resp.json()["message"] == "Unauthorized access!"

    @pytest.mark.asyncio
    async def test_garbage_token(self, test_client, register_user):
        user_id, _ = await register_user("nia@library.org")

        resp = await test_client.get(
            f"/api/user/get/{user_id}", headers={"Authorization": "Bearer not.a.token"}
        )

        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_credential"

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, test_client, register_user):
        user_id, headers = await register_user("nia@library.org")
        resp = await test_client.delete(f"/api/user/delete/{user_id}", headers=headers)
        assert resp.status_code == 200

        resp = await test_client.get(f"/api/user/get/{user_id}", headers=headers)

        assert resp.status_code == 401


class TestUserManagement:

    @pytest.mark.asyncio
    async def test_get_all_requires_admin(self, test_client, register_user):
        _, member_headers = await register_user("nia@library.org")
        _, admin_headers = await register_user("ada@library.org", role="admin")

        assert (await test_client.get("/api/user/getAll", headers=member_headers)).status_code == 401

        resp = await test_client.get("/api/user/getAll", headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.json()) == 2

    @pytest.mark.asyncio
    async def test_member_reads_self_but_not_others(self, test_client, register_user):
        nia_id, nia_headers = await register_user("nia@library.org")
        otto_id, _ = await register_user("otto@library.org")

        assert (await test_client.get(f"/api/user/get/{nia_id}", headers=nia_headers)).status_code == 200
        assert (await test_client.get(f"/api/user/get/{otto_id}", headers=nia_headers)).status_code == 401

    @pytest.mark.asyncio
    async def test_member_cannot_delete_others(self, test_client, register_user):
        _, nia_headers = await register_user("nia@library.org")
        otto_id, _ = await register_user("otto@library.org")

        resp = await test_client.delete(f"/api/user/delete/{otto_id}", headers=nia_headers)

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_edit_self_ignores_role(self, test_client, register_user):
        nia_id, nia_headers = await register_user("nia@library.org")

        resp = await test_client.put(
            f"/api/user/edit/{nia_id}",
            json={"name": "Nia B.", "role": "admin", "password": "sneaky-pass"},
            headers=nia_headers,
        )

        assert resp.status_code == 200
        assert resp.json()["message"] == "User data has been updated"
        assert resp.json()["data"]["name"] == "Nia B."
        assert resp.json()["data"]["role"] == "user"

        login = await test_client.post(
            "/api/user/login", json={"email": "nia@library.org", "password": "sneaky-pass"}
        )
        assert login.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_can_promote(self, test_client, register_user):
        nia_id, _ = await register_user("nia@library.org")
        _, admin_headers = await register_user("ada@library.org", role="admin")

        resp = await test_client.put(
            f"/api/user/edit/{nia_id}", json={"role": "admin"}, headers=admin_headers
        )

        assert resp.json()["data"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_edit_existing_other_user_is_allowed(self, test_client, register_user):
        _, nia_headers = await register_user("nia@library.org")
        otto_id, _ = await register_user("otto@library.org")

        resp = await test_client.put(
            f"/api/user/edit/{otto_id}", json={"gender": "m"}, headers=nia_headers
        )

        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_edit_missing_user_is_404(self, test_client, register_user):
        _, nia_headers = await register_user("nia@library.org")

        resp = await test_client.put(
            "/api/user/edit/no-such-user", json={"gender": "m"}, headers=nia_headers
        )

        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_password_change(self, test_client, register_user):
        nia_id, nia_headers = await register_user("nia@library.org")

        short = await test_client.put(
            f"/api/user/update/password/{nia_id}",
            json={"oldPassword": "secret123", "newPassword": "123"},
            headers=nia_headers,
        )
        assert short.status_code == 400

        wrong = await test_client.put(
            f"/api/user/update/password/{nia_id}",
            json={"oldPassword": "not-it", "newPassword": "new-secret"},
            headers=nia_headers,
        )
        assert wrong.status_code == 401

        ok = await test_client.put(
            f"/api/user/update/password/{nia_id}",
            json={"oldPassword": "secret123", "newPassword": "new-secret"},
            headers=nia_headers,
        )
        assert ok.status_code == 200
        assert ok.json()["message"] == "Password has been updated"

        login = await test_client.post(
            "/api/user/login", json={"email": "nia@library.org", "password": "new-secret"}
        )
        assert login.status_code == 200


class TestCatalog:

    @pytest.mark.asyncio
    async def test_book_writes_require_admin(self, test_client, register_user):
        _, member_headers = await register_user("nia@library.org")

        resp = await test_client.post(
            "/api/book/add", json={"name": "Dune", "author": "Frank Herbert"}, headers=member_headers
        )

        assert resp.status_code == 401
        assert resp.json()["message"] == "Access denied! Only Admins have access."

    @pytest.mark.asyncio
    async def test_book_reads_are_public(self, test_client, register_user):
        _, admin_headers = await register_user("ada@library.org", role="admin")
        book = await _add_book(test_client, admin_headers)

        listing = await test_client.get("/api/book/getAll")
        single = await test_client.get(f"/api/book/get/{book['id']}")

        assert [b["id"] for b in listing.json()] == [book["id"]]
        assert single.json()["isAvailable"] is True

    @pytest.mark.asyncio
    async def test_missing_book_is_404(self, test_client):
        resp = await test_client.get("/api/book/get/no-such-book")
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_category_lifecycle_and_filter(self, test_client, register_user):
        _, admin_headers = await register_user("ada@library.org", role="admin")

        resp = await test_client.post(
            "/api/book/category/add", json={"category": "Science Fiction"}, headers=admin_headers
        )
        assert resp.status_code == 201
        category_id = resp.json()["data"]["id"]

        book = await _add_book(test_client, admin_headers, category=category_id)
        assert book["category"]["category"] == "Science Fiction"

        filtered = await test_client.get(f"/api/book/filterByCategory/{category_id}")
        assert filtered.status_code == 200
        assert [b["id"] for b in filtered.json()] == [book["id"]]

        categories = await test_client.get("/api/book/category/getAll")
        assert [c["category"] for c in categories.json()] == ["Science Fiction"]

        resp = await test_client.delete(
            f"/api/book/category/delete/{category_id}", headers=admin_headers
        )
        assert resp.status_code == 200

        orphan = await test_client.get(f"/api/book/get/{book['id']}")
        assert orphan.json()["category"] is None

    @pytest.mark.asyncio
    async def test_filter_by_empty_category_is_404(self, test_client, register_user):
        _, admin_headers = await register_user("ada@library.org", role="admin")
        resp = await test_client.post(
            "/api/book/category/add", json={"category": "Poetry"}, headers=admin_headers
        )

        filtered = await test_client.get(f"/api/book/filterByCategory/{resp.json()['data']['id']}")

        assert filtered.status_code == 404
        assert filtered.json()["message"] == "Category not found or no books found for the category"


class TestLoanWorkflow:

    @pytest.mark.asyncio
    async def test_full_scenario(self, test_client, register_user):
        member_id, member_headers = await register_user("nia@library.org")
        other_id, other_headers = await register_user("otto@library.org")
        admin_id, admin_headers = await register_user("ada@library.org", role="admin")
        book = await _add_book(test_client, admin_headers)

        # 1. member raises a ticket
        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": book["id"], "borrowerId": member_id},
            headers=member_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["message"] == "Ticket raised for issuing book"
        ticket = resp.json()["ticket"]
        assert ticket["status"] == "pending"
        assert ticket["transactionType"] == "issue"

        # 2. it shows up in the member's pending list, book resolved
        resp = await test_client.get(
            f"/api/transaction/tickets/pending/{member_id}", headers=member_headers
        )
        pending = resp.json()["pendingTickets"]
        assert [t["id"] for t in pending] == [ticket["id"]]
        assert pending[0]["bookId"]["name"] == "Dune"

        # 3. and in the admin's active list
        resp = await test_client.get(
            f"/api/transaction/tickets/active/{admin_id}", headers=admin_headers
        )
        assert [t["id"] for t in resp.json()["pendingTickets"]] == [ticket["id"]]

        # 4. admin approves; book is lent out
        resp = await test_client.put(
            "/api/transaction/ticket/approve",
            json={"ticketId": ticket["id"], "adminId": admin_id},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["ticket"]["approvedBy"] == admin_id
        book_state = await test_client.get(f"/api/book/get/{book['id']}")
        assert book_state.json()["isAvailable"] is False

        # 5. a second borrower's ticket for the same book cannot be approved
        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": book["id"], "borrowerId": other_id},
            headers=other_headers,
        )
        second_id = resp.json()["ticket"]["id"]
        resp = await test_client.put(
            "/api/transaction/ticket/approve",
            json={"ticketId": second_id},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "book_unavailable"

        # 6. member returns the book
        resp = await test_client.put(
            "/api/transaction/ticket/complete",
            json={"ticketId": ticket["id"], "borrowerId": member_id},
            headers=member_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["ticket"]["status"] == "completed"
        assert resp.json()["ticket"]["returnDate"] is not None
        book_state = await test_client.get(f"/api/book/get/{book['id']}")
        assert book_state.json()["isAvailable"] is True

        # 7. completed is terminal
        resp = await test_client.put(
            "/api/transaction/ticket/complete",
            json={"ticketId": ticket["id"], "borrowerId": member_id},
            headers=member_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Ticket already completed"

        # 8. the second ticket can now be approved
        resp = await test_client.put(
            "/api/transaction/ticket/approve",
            json={"ticketId": second_id},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["ticket"]["approvedBy"] == admin_id

    @pytest.mark.asyncio
    async def test_admin_cannot_borrow(self, test_client, register_user):
        admin_id, admin_headers = await register_user("ada@library.org", role="admin")

        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": "any-book", "borrowerId": admin_id},
            headers=admin_headers,
        )

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_member_cannot_borrow_for_someone_else(self, test_client, register_user):
        _, member_headers = await register_user("nia@library.org")
        other_id, _ = await register_user("otto@library.org")

        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": "any-book", "borrowerId": other_id},
            headers=member_headers,
        )

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_member_cannot_approve(self, test_client, register_user):
        member_id, member_headers = await register_user("nia@library.org")
        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": "any-book", "borrowerId": member_id},
            headers=member_headers,
        )

        resp = await test_client.put(
            "/api/transaction/ticket/approve",
            json={"ticketId": resp.json()["ticket"]["id"]},
            headers=member_headers,
        )

        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_member_cannot_return_someone_elses_loan(self, test_client, register_user):
        member_id, member_headers = await register_user("nia@library.org")
        other_id, other_headers = await register_user("otto@library.org")
        _, admin_headers = await register_user("ada@library.org", role="admin")
        book = await _add_book(test_client, admin_headers)
        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": book["id"], "borrowerId": member_id},
            headers=member_headers,
        )
        ticket_id = resp.json()["ticket"]["id"]
        await test_client.put(
            "/api/transaction/ticket/approve",
            json={"ticketId": ticket_id},
            headers=admin_headers,
        )

        # borrowerId names the caller, but the ticket is not theirs
        resp = await test_client.put(
            "/api/transaction/ticket/complete",
            json={"ticketId": ticket_id, "borrowerId": other_id},
            headers=other_headers,
        )

        assert resp.status_code == 401
        book_state = await test_client.get(f"/api/book/get/{book['id']}")
        assert book_state.json()["isAvailable"] is False

    @pytest.mark.asyncio
    async def test_complete_requires_borrower_id(self, test_client, register_user):
        member_id, member_headers = await register_user("nia@library.org")
        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": "any-book", "borrowerId": member_id},
            headers=member_headers,
        )

        resp = await test_client.put(
            "/api/transaction/ticket/complete",
            json={"ticketId": resp.json()["ticket"]["id"]},
            headers=member_headers,
        )

        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_approve_ticket_for_missing_book_is_404(self, test_client, register_user):
        member_id, member_headers = await register_user("nia@library.org")
        _, admin_headers = await register_user("ada@library.org", role="admin")
        resp = await test_client.post(
            "/api/transaction/ticket/issue",
            json={"bookId": "no-such-book", "borrowerId": member_id},
            headers=member_headers,
        )

        resp = await test_client.put(
            "/api/transaction/ticket/approve",
            json={"ticketId": resp.json()["ticket"]["id"]},
            headers=admin_headers,
        )

        assert resp.status_code == 404
        assert resp.json()["message"] == "Book not found"

    @pytest.mark.asyncio
    async def test_pending_list_of_other_member_denied(self, test_client, register_user):
        _, member_headers = await register_user("nia@library.org")
        other_id, _ = await register_user("otto@library.org")

        resp = await test_client.get(
            f"/api/transaction/tickets/pending/{other_id}", headers=member_headers
        )

        assert resp.status_code == 401
