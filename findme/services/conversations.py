# findme/services/conversations.py
"""
Chat helpers. `get_conversation_partners` and `mark_messages_as_read` are the
two named procedures the chat pages call; conversations have no stored
thread entity, partners are derived from sender/receiver ids.
"""
import logging
from typing import Any, Dict, List

from findme.models.message import ConversationDetail, ConversationSummary, Message, PartnerInfo
from findme.repositories import actors as actors_repo
from findme.repositories import messages as messages_repo
from findme.services.realtime import get_feed

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


async def get_conversation_partners(user_id: str) -> List[ConversationSummary]:
    rows = await messages_repo.list_involving(user_id)
    partners: Dict[str, Dict[str, Any]] = {}
    for m in rows:
        partner_id = m["receiver_id"] if m["sender_id"] == user_id else m["sender_id"]
        entry = partners.setdefault(partner_id, {"unread": 0, "last": None})
        # rows arrive oldest first, so the last one seen wins
        entry["last"] = m
        if m["receiver_id"] == user_id and not m.get("is_read"):
            entry["unread"] += 1

    names = await actors_repo.display_names(partners.keys())
    out = []
    for partner_id, entry in partners.items():
        last = entry["last"]
        out.append(ConversationSummary(
            partner_id=partner_id,
            partner_name=names.get(partner_id, UNKNOWN_USER),
            last_message_text=last["message"],
            last_message_time=last["created_at"],
            unread_count=entry["unread"],
        ))
    out.sort(key=lambda c: c.last_message_time, reverse=True)
    return out


async def mark_messages_as_read(p_sender_id: str, p_receiver_id: str) -> int:
    return await messages_repo.mark_as_read(p_sender_id, p_receiver_id)


async def partner_info(partner_id: str) -> PartnerInfo:
    seeker = await actors_repo.get_job_seeker(partner_id)
    if seeker:
        return PartnerInfo(id=partner_id, name=seeker.get("name"))
    company = await actors_repo.get_company(partner_id)
    if company:
        return PartnerInfo(id=partner_id, company_name=company.get("company_name"))
    return PartnerInfo(id=partner_id, name=UNKNOWN_USER)


async def load_conversation(user_id: str, partner_id: str) -> ConversationDetail:
    partner = await partner_info(partner_id)
    rows = await messages_repo.list_between(user_id, partner_id)
    return ConversationDetail(partner=partner, messages=[Message(**r) for r in rows])


async def send_message(sender_id: str, receiver_id: str, text: str) -> Message:
    row = await messages_repo.insert_message(sender_id, receiver_id, text)
    try:
        delivered = await get_feed().publish(row)
        logger.debug("Message %s pushed to %s subscriber(s)", row["id"], delivered)
    except Exception:
        # the row is stored; live delivery is best effort
        logger.exception("Failed to publish message %s to the realtime feed", row["id"])
    return Message(**row)
