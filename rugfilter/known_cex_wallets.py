"""Known centralized-exchange hot wallet addresses on Solana."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

CEX_WALLETS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "Binance": frozenset(
            {
                "2ojv9BAiHUrvsm9gxDe7fJSzbNZSJcxZvf8dqmWGHG8S",
                "5tzFkiKscXHK5ZXCGbXZxdw7gTjjD1mBwuoFbhUvuAi9",
                "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
                "3yFwqXBfZY4jBVUafQ1YEXw189y2dN3V5KQq9uzBDy1E",
                "HN7cABqLq46Es1jh92dQQisAq662SmxELLLsHHe4YWrH",
                "F4TjXLaQPMEnMbZJ8GDR49GvWJz29dsFrMKRWB3JEFLi",
                "CuieVDEDtLo7FypA946cYHVH6QfADSNBp22ND1LPAazq",
            }
        ),
        "Bybit": frozenset(
            {
                "AC5RDfQFmDS1deWZos921JfqscXdByf8BKHs5ACWjtW2",
                "GJtJuWD9qYcCkrwMBmtY1tpapV1sKfB2zUv9Q4aqpnGd",
            }
        ),
        "OKX": frozenset(
            {
                "5VCwKtCXgCDuQosQe3MbMGrFfJzWidgYyMEpmxCa87xC",
                "JA5cjkRJ1euVi9xLWsCJVzsRzEkT8vcC4rqw9sVAo5d6",
                "ASTyfSima4LLAdDgoFGkgqoKowG1LZFDr9fAQrg7iaJZ",
            }
        ),
        "KuCoin": frozenset(
            {
                "BmFdpraQhkiDQE6SnfG5PkCNJGKTqbGQBgYPCFSWFWuy",
                "6tj1THeeDAXcBFAHRp6vkAb6CKs5eAtNqVzgbL5YqajV",
            }
        ),
        "Gate.io": frozenset(
            {
                "u6PJ8DtQuPFnfmwHbGFULQ4u4EgjDiyYKjVEsynXq2w",
                "7hUdUTkJLwdcmt3jSEkwkTR1L2gD4MZRp1r1nVhhmNRm",
            }
        ),
        "Coinbase": frozenset(
            {
                "GJRs4FwHtemZ5ZE9x3FNvJ8TMwitKTh21yxdRPqn7npE",
                "2AQdpHJ2JpcEgPiATUXjQxA8QmafFegfQwSLWSprPicm",
                "H8sMJSCQxfKiFTCfDR3DUMLPwcRbM61LGFJ8N4dK3WjS",
            }
        ),
        "Kraken": frozenset(
            {
                "FWznbcNXWQuHTawe9RxvQ2LdCENssh12dsznf4RiouN5",
                "krakqkWHEjzJNfDwhmLz8PYSkPbJ1BnDu1X4ynNF3gM",
            }
        ),
        "Huobi/HTX": frozenset(
            {
                "88xTWZMeKFaPH714feFMoTfyV6gDeFHDn11dpLnDkCdK",
                "HKq5bqkgUJoa5XN3vZM6YUBiDfFnNqFMS86bDQPAHGMJ",
            }
        ),
        "Crypto.com": frozenset(
            {
                "AobVSwdW9BbpMdJvTqeCN4hPAmh4rHm7vwLnQ5ATbo3k",
                "6FEVkH17P9y8Q9aCkDdPcMDjvj7SVxrTETaYEm8f51S3",
            }
        ),
    }
)


def identify_cex_wallet(pubkey: str) -> Optional[str]:
    """Return the exchange name for a known hot wallet, or None."""
    return next(
        (exchange for exchange, wallets in CEX_WALLETS.items() if pubkey in wallets),
        None,
    )


def total_known_cex_wallets() -> int:
    """Number of exchange wallets in the table."""
    return sum(len(wallets) for wallets in CEX_WALLETS.values())