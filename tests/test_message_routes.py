"""Messaging between the owning company and candidate of an application."""
from sqlalchemy import select

from jobboard.models import Candidate, Message


async def _send(client, headers, application_id, content, receiver_id, receiver_type):
    return await client.post(
        "/api/messages/send",
        json={
            "applicationId": application_id,
            "content": content,
            "receiverId": receiver_id,
            "receiverType": receiver_type,
        },
        headers=headers,
    )


class TestSend:

    async def test_company_to_candidate(self, client, seed, application_id, as_company, notifier):
        response = await _send(
            client, as_company(seed.acme_id), application_id, "Are you free Tuesday?", seed.casey_id, "candidate"
        )

        assert response.status_code == 200
        sent = response.json()["sent"]
        assert sent["senderId"] == str(seed.acme_id)
        assert sent["senderType"] == "recruiter"
        assert sent["receiverId"] == seed.casey_id
        assert sent["isRead"] is False

        assert len(notifier.sent) == 1
        email = notifier.sent[0]
        assert email["to"] == "casey@mail.test"
        assert email["subject"] == "New Message Received - Skill-Bridge"
        assert "Acme" in email["html"]
        assert "Backend Engineer" in email["html"]

    async def test_candidate_to_company(self, client, seed, application_id, as_candidate, notifier):
        response = await _send(
            client, as_candidate(seed.casey_id), application_id, "Tuesday works", seed.acme_id, "recruiter"
        )

        assert response.status_code == 200
        sent = response.json()["sent"]
        assert sent["senderId"] == seed.casey_id
        assert sent["senderType"] == "candidate"
        assert sent["receiverId"] == str(seed.acme_id)

        assert notifier.sent[0]["to"] == "hr@acme.test"
        assert "Casey" in notifier.sent[0]["html"]

    async def test_outsider_company_forbidden(self, client, seed, application_id, as_company, row_count):
        response = await _send(client, as_company(seed.globex_id), application_id, "Hi", seed.casey_id, "candidate")
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to send messages for this application"
        assert await row_count(Message) == 0

    async def test_outsider_candidate_forbidden(self, client, seed, application_id, as_candidate):
        response = await _send(client, as_candidate(seed.robin_id), application_id, "Hi", seed.acme_id, "recruiter")
        assert response.status_code == 403

    async def test_unknown_application(self, client, seed, as_company):
        response = await _send(client, as_company(seed.acme_id), 9999, "Hi", seed.casey_id, "candidate")
        assert response.status_code == 404
        assert response.json()["message"] == "Application not found"

    async def test_blank_content(self, client, seed, application_id, as_company, row_count):
        response = await _send(client, as_company(seed.acme_id), application_id, "   ", seed.casey_id, "candidate")
        assert response.status_code == 400
        assert response.json()["message"] == "Message content cannot be empty"
        assert await row_count(Message) == 0

    async def test_missing_fields(self, client, seed, application_id, as_company):
        response = await client.post(
            "/api/messages/send", json={"applicationId": application_id}, headers=as_company(seed.acme_id)
        )
        assert response.status_code == 400
        assert response.json()["message"].startswith("Missing required fields")

    async def test_bad_receiver_type(self, client, seed, application_id, as_company):
        response = await _send(client, as_company(seed.acme_id), application_id, "Hi", seed.casey_id, "admin")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid receiverType. Must be either recruiter or candidate"

    async def test_email_failure_keeps_message(self, client, seed, application_id, as_company, notifier, row_count):
        notifier.fail = True
        response = await _send(client, as_company(seed.acme_id), application_id, "Hi", seed.casey_id, "candidate")
        assert response.status_code == 200
        assert await row_count(Message) == 1

    async def test_attachments_round_trip(self, client, seed, application_id, as_candidate):
        response = await client.post(
            "/api/messages/send",
            json={
                "applicationId": application_id,
                "content": "Portfolio attached",
                "receiverId": seed.acme_id,
                "receiverType": "recruiter",
                "attachments": ["https://files.example.com/portfolio.pdf"],
            },
            headers=as_candidate(seed.casey_id),
        )
        assert response.json()["sent"]["attachments"] == ["https://files.example.com/portfolio.pdf"]


class TestPrincipalResolution:

    async def test_bad_company_token_does_not_fall_back_to_candidate(self, client, seed, application_id, as_candidate):
        headers = {"token": "forged", **as_candidate(seed.casey_id)}
        response = await _send(client, headers, application_id, "Hi", seed.acme_id, "recruiter")
        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token failed"

    async def test_no_credentials(self, client, application_id):
        response = await client.get("/api/messages/unread")
        assert response.status_code == 401


class TestReading:

    async def test_conversation_in_order_and_marked_read(
        self, client, seed, application_id, as_company, as_candidate, session_factory
    ):
        await _send(client, as_company(seed.acme_id), application_id, "First", seed.casey_id, "candidate")
        await _send(client, as_candidate(seed.casey_id), application_id, "Second", seed.acme_id, "recruiter")
        await _send(client, as_company(seed.acme_id), application_id, "Third", seed.casey_id, "candidate")

        unread = await client.get("/api/messages/unread", headers=as_candidate(seed.casey_id))
        assert unread.json() == {"success": True, "unreadCount": 2}

        response = await client.get(f"/api/messages/application/{application_id}", headers=as_candidate(seed.casey_id))
        assert [m["content"] for m in response.json()["messages"]] == ["First", "Second", "Third"]

        unread = await client.get("/api/messages/unread", headers=as_candidate(seed.casey_id))
        assert unread.json()["unreadCount"] == 0

        # The company's unread message is untouched by the candidate reading
        company_unread = await client.get("/api/messages/unread", headers=as_company(seed.acme_id))
        assert company_unread.json()["unreadCount"] == 1

    async def test_candidate_id_equal_to_company_id_keeps_mail_apart(
        self, client, seed, as_candidate, as_company, session_factory
    ):
        shadow_id = str(seed.acme_id)
        async with session_factory() as session:
            session.add(Candidate(
                id=shadow_id, name="Shadow", email="shadow@mail.test",
                resume="https://files.example.com/shadow.pdf",
            ))
            await session.commit()
        applied = await client.post(
            "/api/users/apply", json={"jobId": seed.backend_job_id}, headers=as_candidate(shadow_id)
        )
        shadow_application = applied.json()["application"]["id"]

        await _send(client, as_candidate(shadow_id), shadow_application, "For Acme", seed.acme_id, "recruiter")

        unread = await client.get("/api/messages/unread", headers=as_candidate(shadow_id))
        assert unread.json()["unreadCount"] == 0

        await client.get(f"/api/messages/application/{shadow_application}", headers=as_candidate(shadow_id))

        async with session_factory() as session:
            stored = (await session.execute(select(Message))).scalars().one()
        assert stored.is_read is False
        company_unread = await client.get("/api/messages/unread", headers=as_company(seed.acme_id))
        assert company_unread.json()["unreadCount"] == 1

    async def test_outsider_cannot_read(self, client, seed, application_id, as_company):
        response = await client.get(f"/api/messages/application/{application_id}", headers=as_company(seed.globex_id))
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to view these messages"
