"""
Hive API Client
JSON-RPC reads over httpx and signed broadcasts through lighthive.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from lighthive.client import Client as LighthiveClient
from lighthive.datastructures import Operation

from ..core.config import HIVE_NODES, HIVE_TIMEOUT
from ..errors import HistoryBoundaryError, LedgerError, TransientLedgerError
from .base import AccountBalances, Asset, HistoryEntry

logger = logging.getLogger("stoken_server.ledger.hive")


class HiveClient:
    """Talks to the Hive blockchain on behalf of one account.

    Reads fail over across ``nodes`` in order. The posting key signs claims
    and comments; the active key signs transfers and custom_json.
    """

    def __init__(
        self,
        account: str,
        posting_key: str = "",
        active_key: str = "",
        nodes: Optional[Sequence[str]] = None,
        timeout: float = HIVE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account = account
        self.posting_key = posting_key
        self.active_key = active_key
        self.nodes = list(nodes or HIVE_NODES)
        self.timeout = timeout
        self._transport = transport

    # JSON-RPC ---------------------------------------------------------------

    async def call(self, method: str, params: Any) -> Any:
        """Invoke ``method`` on the first node that answers."""

        payload = {"jsonrpc": "2.0", "method": method, "params": params, "id": 1}
        last_error: Optional[Exception] = None
        for node in self.nodes:
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    r = await client.post(node, json=payload)
                    r.raise_for_status()
                    body = r.json()
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning(f"Hive node {node} failed on {method}: {exc}")
                last_error = exc
                continue

            if body.get("error"):
                self._raise_rpc_error(method, body["error"])
            return body.get("result")

        raise TransientLedgerError(f"All Hive nodes failed on {method}: {last_error}")

    @staticmethod
    def _raise_rpc_error(method: str, error: Dict[str, Any]) -> None:
        data = error.get("data") or {}
        if data.get("code") == HistoryBoundaryError.code:
            stack = data.get("stack") or [{}]
            sequence = (stack[0].get("data") or {}).get("sequence")
            if sequence is not None:
                raise HistoryBoundaryError(int(sequence), error.get("message", ""))
        raise TransientLedgerError(
            f"{method} failed: {error.get('message', error)}", code=data.get("code")
        )

    # Reads ------------------------------------------------------------------

    async def get_account(self, name: str) -> AccountBalances:
        result = await self.call("condenser_api.get_accounts", [[name]])
        if not result:
            raise LedgerError(f"Account not found: @{name}")
        acc = result[0]
        return AccountBalances(
            name=acc.get("name", name),
            reward_hive=Asset.parse(acc.get("reward_hive_balance", "0.000 HIVE")),
            reward_hbd=Asset.parse(acc.get("reward_hbd_balance", "0.000 HBD")),
            reward_vests=Asset.parse(acc.get("reward_vesting_balance", "0.000000 VESTS")),
        )

    async def get_account_history(
        self,
        name: str,
        start: int,
        limit: int,
        filter_low: int,
        filter_high: int,
    ) -> List[HistoryEntry]:
        result = await self.call(
            "condenser_api.get_account_history",
            [name, start, limit, filter_low, filter_high],
        )
        entries: List[HistoryEntry] = []
        for sequence, item in result or []:
            op = item.get("op")
            if isinstance(op, dict):
                op_type = op.get("type", "").removesuffix("_operation")
                op_payload = op.get("value") or {}
            else:
                op_type, op_payload = op[0], op[1]
            entries.append(
                HistoryEntry(
                    sequence=int(sequence),
                    op_type=op_type,
                    payload=op_payload,
                    trx_id=item.get("trx_id"),
                    timestamp=item.get("timestamp"),
                )
            )
        return entries

    async def get_content(self, author: str, permlink: str) -> Dict[str, Any]:
        """A post with its payout fields (``pending_payout_value``, ``active_votes``...)."""

        result = await self.call("condenser_api.get_content", [author, permlink])
        # Nodes answer unknown posts with an empty shell instead of an error.
        if not result or not result.get("author"):
            raise LedgerError(f"Post not found: @{author}/{permlink}")
        return result

    async def get_account_posts(self, account: str, limit: int = 1) -> List[Dict[str, Any]]:
        """Most recent top-level posts of ``account``, newest first."""

        result = await self.call(
            "bridge.get_account_posts",
            {"account": account, "sort": "posts", "limit": limit},
        )
        return list(result or [])

    # Broadcasts -------------------------------------------------------------

    def _broadcast_sync(self, key: str, op_type: str, payload: Dict[str, Any]) -> Any:
        client = LighthiveClient(nodes=self.nodes, keys=[key])
        return client.broadcast_sync(Operation(op_type, payload))

    async def _broadcast(self, key: str, op_type: str, payload: Dict[str, Any]) -> Optional[str]:
        if not key:
            raise LedgerError(f"No signing key configured for {op_type}")
        try:
            result = await asyncio.to_thread(self._broadcast_sync, key, op_type, payload)
        except Exception as exc:
            raise TransientLedgerError(f"Broadcast of {op_type} failed: {exc}") from exc
        return result.get("id") if isinstance(result, dict) else None

    async def claim_reward_balance(
        self, account: str, reward_hive: Asset, reward_hbd: Asset, reward_vests: Asset
    ) -> Optional[str]:
        return await self._broadcast(
            self.posting_key,
            "claim_reward_balance",
            {
                "account": account,
                "reward_hive": str(reward_hive),
                "reward_hbd": str(reward_hbd),
                "reward_vests": str(reward_vests),
            },
        )

    async def transfer(self, sender: str, to: str, amount: Asset, memo: str) -> Optional[str]:
        return await self._broadcast(
            self.active_key,
            "transfer",
            {"from": sender, "to": to, "amount": str(amount), "memo": memo},
        )

    async def custom_json(
        self,
        required_auths: Sequence[str],
        required_posting_auths: Sequence[str],
        app_id: str,
        payload: Any,
    ) -> Optional[str]:
        return await self._broadcast(
            self.active_key,
            "custom_json",
            {
                "required_auths": list(required_auths),
                "required_posting_auths": list(required_posting_auths),
                "id": app_id,
                "json": json.dumps(payload),
            },
        )

    async def post_comment(
        self,
        parent_author: str,
        parent_permlink: str,
        author: str,
        permlink: str,
        title: str,
        body: str,
        json_metadata: Dict[str, Any],
    ) -> Optional[str]:
        return await self._broadcast(
            self.posting_key,
            "comment",
            {
                "parent_author": parent_author,
                "parent_permlink": parent_permlink,
                "author": author,
                "permlink": permlink,
                "title": title,
                "body": body,
                "json_metadata": json.dumps(json_metadata),
            },
        )


__all__ = ["HiveClient"]
