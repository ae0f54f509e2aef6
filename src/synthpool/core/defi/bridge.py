"""
Cross-ledger relay for synthetic assets.

Each ledger only exposes two privileged entry points: burn on the way out
and mint on the way in. The relay pairs them up. It holds the bridge role
on every registered ledger, maps each synthetic to its counterpart on the
destination network, and refuses to deliver the same transfer twice.

Message transport and finality are outside the core; ``deliver`` is called
once the message is considered final.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Protocol

from ..exceptions import StateError, ValidationError

logger = logging.getLogger(__name__)


class BridgeEndpoint(Protocol):
    """Ledger side of the bridge."""

    def is_synthetic(self, asset: str) -> bool:
        ...

    def bridge_burn(self, caller: str, asset: str, from_addr: str, amount: int) -> None:
        ...

    def bridge_mint(self, caller: str, asset: str, to: str, amount: int) -> None:
        ...


@dataclass(frozen=True)
class BridgeMessage:
    """Burn receipt carried from the source to the destination ledger."""

    transfer_id: str
    source_network: str
    destination_network: str
    source_asset: str
    destination_asset: str
    sender: str
    recipient: str
    amount: int
    nonce: int


@dataclass
class BridgeRelay:
    """
    Burn-and-mint relay between ledgers.

    Usage:
        relay = BridgeRelay(address="0xrelay")
        relay.register_endpoint("mainnet", engine_a)
        relay.register_endpoint("sidechain", engine_b)
        relay.map_asset("mainnet", ybtc_a, "sidechain", ybtc_b)
        message = relay.send("mainnet", "sidechain", ybtc_a, alice, alice, amount)
        relay.deliver(message)
    """

    address: str
    endpoints: dict[str, BridgeEndpoint] = field(default_factory=dict)
    asset_routes: dict[tuple[str, str, str], str] = field(default_factory=dict)
    processed: set[str] = field(default_factory=set)
    nonce: int = 0

    def __post_init__(self) -> None:
        if not self.address:
            raise ValidationError("Relay address is required")
        self.address = self.address.lower()

    def register_endpoint(self, network: str, endpoint: BridgeEndpoint) -> None:
        if not network:
            raise ValidationError("Network name is required")
        self.endpoints[network] = endpoint
        logger.info(
            "Bridge endpoint registered",
            extra={"event": "bridge.endpoint_registered", "network": network},
        )

    def map_asset(
        self,
        source_network: str,
        source_asset: str,
        destination_network: str,
        destination_asset: str,
    ) -> None:
        """Declare ``destination_asset`` as the counterpart of ``source_asset``."""
        source = self._endpoint(source_network)
        destination = self._endpoint(destination_network)
        if not source.is_synthetic(source_asset):
            raise ValidationError(f"{source_asset} is not a synthetic on {source_network}")
        if not destination.is_synthetic(destination_asset):
            raise ValidationError(f"{destination_asset} is not a synthetic on {destination_network}")

        self.asset_routes[(source_network, source_asset.lower(), destination_network)] = destination_asset.lower()

    def send(
        self,
        source_network: str,
        destination_network: str,
        asset: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> BridgeMessage:
        """
        Burn ``amount`` of ``asset`` from ``sender`` on the source ledger.

        Returns:
            Message to hand to ``deliver`` on the destination side
        """
        if source_network == destination_network:
            raise ValidationError("Source and destination networks must differ")
        if amount <= 0:
            raise ValidationError("Bridge amount must be positive")
        if not recipient:
            raise ValidationError("Recipient is required")

        asset = asset.lower()
        route = (source_network, asset, destination_network)
        destination_asset = self.asset_routes.get(route)
        if destination_asset is None:
            raise StateError(
                "No bridge route for asset",
                details={"source": source_network, "asset": asset, "destination": destination_network},
            )
        self._endpoint(destination_network)

        self._endpoint(source_network).bridge_burn(self.address, asset, sender, amount)

        self.nonce += 1
        message = BridgeMessage(
            transfer_id=self._transfer_id(source_network, destination_network, asset, sender, recipient, amount),
            source_network=source_network,
            destination_network=destination_network,
            source_asset=asset,
            destination_asset=destination_asset,
            sender=sender.lower(),
            recipient=recipient.lower(),
            amount=amount,
            nonce=self.nonce,
        )
        logger.info(
            "Bridge transfer sent",
            extra={
                "event": "bridge.send",
                "transfer_id": message.transfer_id[:16],
                "source": source_network,
                "destination": destination_network,
                "amount": amount,
            },
        )
        return message

    def deliver(self, message: BridgeMessage) -> bool:
        """
        Mint the bridged amount on the destination ledger.

        Returns:
            False if the transfer was already delivered
        """
        if message.transfer_id in self.processed:
            logger.warning(
                "Duplicate bridge delivery ignored",
                extra={"event": "bridge.duplicate", "transfer_id": message.transfer_id[:16]},
            )
            return False

        self._endpoint(message.destination_network).bridge_mint(
            self.address, message.destination_asset, message.recipient, message.amount
        )
        self.processed.add(message.transfer_id)

        logger.info(
            "Bridge transfer delivered",
            extra={
                "event": "bridge.deliver",
                "transfer_id": message.transfer_id[:16],
                "destination": message.destination_network,
                "amount": message.amount,
            },
        )
        return True

    def transfer(
        self,
        source_network: str,
        destination_network: str,
        asset: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> BridgeMessage:
        """Send and deliver in one step."""
        message = self.send(source_network, destination_network, asset, sender, recipient, amount)
        self.deliver(message)
        return message

    def _endpoint(self, network: str) -> BridgeEndpoint:
        endpoint = self.endpoints.get(network)
        if endpoint is None:
            raise StateError(f"Unknown bridge network: {network}")
        return endpoint

    def _transfer_id(
        self,
        source_network: str,
        destination_network: str,
        asset: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> str:
        payload = f"{source_network}:{destination_network}:{asset}:{sender.lower()}:{recipient.lower()}:{amount}:{self.nonce}"
        return hashlib.sha3_256(payload.encode()).hexdigest()
