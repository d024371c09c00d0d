"""
SMA crossover backtest and threshold grid search on sample candles.

Demonstrates: load CSV → replay through a Strategy → metrics → best thresholds.
"""

from pathlib import Path

from spot_backtest import (
    BacktestEngine,
    load_candles,
    print_report,
    print_threshold_report,
    run_threshold_grid_search,
)
from spot_core import Config
from spot_core.strategies import SMAStrategy


def main() -> None:
    data_dir = Path(__file__).resolve().parent / "data"
    candles = load_candles(data_dir / "sample_candles.csv", pair="XBTZAR")

    # 0.1% taker fee on each leg
    fee_rate = 0.001
    config = Config(pair="XBTZAR", stake_size=0.01)
    engine = BacktestEngine(
        SMAStrategy(config.short_window, config.long_window),
        fee_rate,
        stake_size=config.stake_size,
        config=config,
    )
    result = engine.run(candles)
    print_report(result, title="SMA 5/10")

    best = run_threshold_grid_search(candles, fee_rate, 0.001, 0.02, 0.001)
    print_threshold_report([best])


if __name__ == "__main__":
    main()
