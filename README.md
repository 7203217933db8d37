# rugfilter

A pre-buy filter pipeline for newly minted tokens. Checks score a token's
metadata, its creator's wallet and the buys made right after creation; the
scores are combined into a buy-or-skip decision with a position-size
multiplier. A Telegram bot lets an operator watch the numbers and change
trading parameters while the program runs.

## Settings

All thresholds live in `rugfilter.filter_types.FilterSettings`, a frozen
dataclass with defaults. Pass your own instance as `settings=` to
`GenesisDetector`, `MetadataChecker`, `WalletProfiler`, `FilterLogger` and
`BotState`.

## The checks

- **Genesis bundle detection** (`rugfilter.genesis_detector.GenesisDetector`):
  call `register_mint` when a token is created and `record_buy` for each buy;
  buys outside the first `genesis_slot_window` slots are ignored. `check`
  fails the mint when too much supply was bought in the window, when one
  wallet bought too much, or when many wallets bought in the creation slot
  itself, and warns on many non-creator buyers or elevated buying. `cleanup`
  drops mints tracked for more than five minutes.
- **Metadata checks** (`rugfilter.metadata_checker.MetadataChecker`): missing
  URI, short name or symbol, spam patterns (`detect_spam_pattern`), and names
  another mint used in the last five minutes (`NameTracker`). With
  `fetch_uri_content` on, the URI's JSON document is fetched and scored by
  `score_metadata_document`; a complete document lowers the risk.
- **Dev wallet profiling** (`rugfilter.wallet_profiler.WalletProfiler`): reads
  the creator's signatures through `SolanaRpc` and scores wallet age, history
  length, exchange-related memos and whether the creator is itself a known
  exchange hot wallet (`rugfilter.known_cex_wallets.identify_cex_wallet`).
  Results are cached for five minutes; an RPC error or timeout only adds a
  small warning.

Each check returns a `FilterResult`, built with `FilterResult.passed_ok`,
`FilterResult.warn` or `FilterResult.fail`.

## Combining results

`rugfilter.filter_aggregator.FilterPipeline.run` runs the metadata check and
the wallet profiler concurrently (each only while enabled in the `BotState`)
and decides:

- any failed check, or a total risk at or above `BotState.max_risk()`, means
  skip; warn-only mode turns every decision into a buy;
- while `BotState.bot_is_running` is false every token is skipped (it starts
  false);
- with dynamic sizing on, the multiplier shrinks as risk grows, never below
  `min_buy_multiplier`.

The genesis check is not part of `run`; call `GenesisDetector.check` once the
creation transaction's buys are recorded.

```python
import asyncio

from rugfilter.filter_aggregator import FilterPipeline
from rugfilter.filter_types import FilterContext
from rugfilter.live_settings import BotState
from rugfilter.metadata_checker import MetadataChecker
from rugfilter.wallet_profiler import SolanaRpc, WalletProfiler

pipeline = FilterPipeline(
    MetadataChecker(),
    WalletProfiler(SolanaRpc("http://localhost:8899")),
    state=BotState(bot_is_running=True),
)
ctx = FilterContext(mint="<mint address>", creator="<creator address>",
                    name="Example", symbol="EXM", uri="")
decision = asyncio.run(pipeline.run(ctx))
print(decision.should_buy, decision.buy_amount_multiplier)
print(decision.rejection_summary())
```

The pipeline counts every decision in its `BotStats`, writes to a
`FilterLogger` if given one, and, while the bot runs, sends the decision
through a notifier if given one.

## Audit log

`rugfilter.filter_logger.FilterLogger` writes one CSV row per check result to
`<filter_log_dir>/filter_audit_<date>.csv`, with a header in new files, and
moves to a new file when the local date changes.

## Position sizing after trades

`rugfilter.dynamic_buy.DynamicBuyTracker` keeps a multiplier per trading
pattern: a run of wins raises it up to a ceiling, a run of losses lowers it,
and `adjusted_buy_amount` applies it within the floor and ceiling of
`DynamicBuySettings`. It is off unless `DynamicBuySettings(enabled=True)`.

## Telegram

Both the notifier and the control bot use two environment variables:

- `TG_BOT_TOKEN` - the bot's API token
- `TG_CHAT_ID` - the only chat the bot answers and reports to

`rugfilter.tg_notify.TelegramNotifier.from_env()` sends filter decisions,
trade results and stop-loss / take-profit / trailing-stop events; without
both variables it sends nothing.

Start the control bot with:

```sh
rugfilter-control
```

Options: `--api-base` (Bot API base URL) and `--poll-interval` (seconds
between polls). The command exits with status 1 if either variable is unset.

From the chat you can open the dashboard, start and stop buying, set the buy
amount, stop loss, take profit, trailing stop and maximum risk score, switch
dynamic sizing and warn-only mode, and turn individual filter modules on and
off. Changes apply at once. To have them steer a `FilterPipeline`, build
`TelegramControlBot` and the pipeline with the same `BotState` and
`BotStats` objects.

## What this package does not do

- It does not watch the chain for new mints, build, sign or send
  transactions, or track held positions. `TelegramControlBot` takes
  `held_positions` and `sell_all` callables for that; without them, Stop
  reports no tokens held and Sell All has nothing to sell.
- It has no wallet management: the chat's wallet button and wallet commands
  get no answer, and a pending key import is dropped.
- It reads no configuration file; settings are `FilterSettings` values you
  construct.
- The dashboard's period buttons redraw the same running totals; no history
  is stored.

## Installing for development

```sh
pip install -e ".[test]"
pytest
```