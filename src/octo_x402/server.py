"""MCP server exposing the x402 payment tools over stdio.

Run with: octo-x402-mcp
"""

import logging
import sys
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from octo_x402.config import Settings
from octo_x402.tools import X402Tools

logger = logging.getLogger(__name__)

SERVER_NAME = "octo-x402-mcp"


def create_server(tools: Optional[X402Tools] = None) -> FastMCP:
    """Create the MCP server with every x402 tool registered."""
    tools = tools or X402Tools(Settings.from_env())
    server = FastMCP(SERVER_NAME)

    @server.tool(
        name="x402_get_health",
        description="Check the health and status of the x402 facilitator service",
    )
    def x402_get_health() -> dict[str, Any]:
        return tools.get_health()

    @server.tool(
        name="x402_get_supported_networks",
        description="List the payment schemes and networks the facilitator supports",
    )
    def x402_get_supported_networks() -> dict[str, Any]:
        return tools.get_supported_networks()

    @server.tool(
        name="x402_get_stats",
        description="Get facilitator statistics",
    )
    def x402_get_stats() -> dict[str, Any]:
        return tools.get_stats()

    @server.tool(
        name="x402_create_payment_requirements",
        description=(
            "Create x402 payment requirements for a merchant endpoint. "
            "Amount is in USDC minor units (10000 = $0.01)."
        ),
    )
    def x402_create_payment_requirements(
        network: str,
        amount: str,
        merchantWallet: str,
        resource: str,
        description: str,
        mimeType: Optional[str] = None,
    ) -> dict[str, Any]:
        return tools.create_payment_requirements(
            network, amount, merchantWallet, resource, description, mime_type=mimeType
        )

    @server.tool(
        name="x402_create_evm_payment",
        description=(
            "Create a signed EIP-712 USDC transfer authorization for an EVM network "
            "and encode it as an X-PAYMENT header"
        ),
    )
    def x402_create_evm_payment(
        network: str,
        privateKey: str,
        paymentRequirements: dict[str, Any],
    ) -> dict[str, Any]:
        return tools.create_evm_payment(network, privateKey, paymentRequirements)

    @server.tool(
        name="x402_create_solana_payment",
        description=(
            "Create a signed Solana USDC transfer transaction and encode it as an "
            "X-PAYMENT header. Submit it promptly: the blockhash expires."
        ),
    )
    def x402_create_solana_payment(
        network: str,
        privateKey: str,
        paymentRequirements: dict[str, Any],
    ) -> dict[str, Any]:
        return tools.create_solana_payment(network, privateKey, paymentRequirements)

    @server.tool(
        name="x402_verify_payment",
        description="Verify a payment payload against its requirements with the facilitator",
    )
    def x402_verify_payment(
        paymentPayload: dict[str, Any],
        paymentRequirements: dict[str, Any],
    ) -> dict[str, Any]:
        return tools.verify_payment(paymentPayload, paymentRequirements)

    @server.tool(
        name="x402_settle_payment",
        description="Settle a verified payment on-chain through the facilitator",
    )
    def x402_settle_payment(
        paymentPayload: dict[str, Any],
        paymentRequirements: dict[str, Any],
    ) -> dict[str, Any]:
        return tools.settle_payment(paymentPayload, paymentRequirements)

    @server.tool(
        name="x402_decode_payment_header",
        description="Decode a base64 X-PAYMENT header into its payment payload",
    )
    def x402_decode_payment_header(paymentHeader: str) -> dict[str, Any]:
        return tools.decode_payment_header(paymentHeader)

    @server.tool(
        name="x402_calculate_total_cost",
        description="Calculate the total cost of a payment including network fees",
    )
    def x402_calculate_total_cost(network: str, amount: str) -> dict[str, Any]:
        return tools.calculate_total_cost(network, amount)

    @server.tool(
        name="x402_get_network_info",
        description="Get USDC address, chain id and fee structure for a network",
    )
    def x402_get_network_info(network: str) -> dict[str, Any]:
        return tools.get_network_info(network)

    return server


def main() -> None:
    settings = Settings.from_env()
    # stdout carries the MCP protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    tools = X402Tools(settings)
    try:
        logger.info("%s running on stdio (facilitator %s)", SERVER_NAME, settings.facilitator_url)
        create_server(tools).run()
    finally:
        tools.close()


if __name__ == "__main__":
    main()
