from pathlib import Path

import pandas as pd
import pytest

from alitecs_adr.replay import (
    REPLAY_COLUMNS,
    load_trace,
    replay,
    summarize,
    synthetic_trace,
)


def test_synthetic_trace_is_reproducible():
    a = synthetic_trace(50, 3.0, snr_std_db=2.0, loss_probability=0.2, seed=4)
    b = synthetic_trace(50, 3.0, snr_std_db=2.0, loss_probability=0.2, seed=4)
    c = synthetic_trace(50, 3.0, snr_std_db=2.0, loss_probability=0.2, seed=5)
    pd.testing.assert_frame_equal(a, b)
    assert not a["snr_db"].equals(c["snr_db"])
    assert list(a.columns) == ["f_cnt", "snr_db", "lost_copies"]
    assert a["f_cnt"].tolist() == list(range(50))
    assert a["lost_copies"].between(0, 3).all()


def test_synthetic_trace_without_noise_or_loss():
    trace = synthetic_trace(10, -4.0, first_f_cnt=100)
    assert (trace["snr_db"] == -4.0).all()
    assert (trace["lost_copies"] == 0).all()
    assert trace["f_cnt"].iloc[0] == 100


def test_synthetic_trace_total_loss():
    trace = synthetic_trace(10, 0.0, loss_probability=1.0)
    assert (trace["lost_copies"] == 3).all()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"n_uplinks": 0, "link_snr_db": 0.0},
        {"n_uplinks": 5, "link_snr_db": 0.0, "loss_probability": 1.5},
        {"n_uplinks": 5, "link_snr_db": 0.0, "snr_std_db": -1.0},
    ],
)
def test_synthetic_trace_rejects_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        synthetic_trace(**kwargs)


def test_replay_strong_link_converges():
    df = replay(synthetic_trace(60, 10.0), dr=0, tx_power_index=0, nb_trans=1)

    assert list(df.columns) == list(REPLAY_COLUMNS)
    assert df["received"].all()
    # First uplink: 20 dB margin at DR0 -> DR5 and one power step
    assert (df.loc[0, "dr"], df.loc[0, "tx_power_index"]) == (5, 1)
    assert df.loc[1, "tx_power_index"] == 3
    assert df.loc[3, "tx_power_index"] == 6
    # Once the 10 dB sample leaves the window the margin turns negative and a
    # full window at index 6 triggers one power increase
    assert df.loc[22, "tx_power_index"] == 6
    assert df.loc[23, "tx_power_index"] == 5
    assert df["changed"].sum() == 5

    summary = summarize(df)
    assert summary == {
        "uplinks": 60,
        "received": 60,
        "pdr": 1.0,
        "changes": 5,
        "final_dr": 5,
        "final_tx_power_index": 5,
        "final_nb_trans": 1,
        "mean_dr": 5.0,
    }


def test_replay_raises_nb_trans_under_loss():
    lost_copies = [0] * 25
    lost_copies[5] = 1
    lost_copies[10] = 1
    lost_copies[23] = 1
    trace = pd.DataFrame({"f_cnt": range(25), "snr_db": [2.5] * 25, "lost_copies": lost_copies})

    df = replay(trace, dr=5, tx_power_index=0, nb_trans=1)

    assert not df.loc[5, "received"]
    assert not df.loc[10, "received"]
    assert (df.loc[:20, "nb_trans"] == 1).all()
    # 20 received uplinks with two counter gaps: 10 % loss
    assert df.loc[21, "nb_trans"] == 2
    assert df.loc[22, "nb_trans"] == 3
    # A single lost copy no longer loses the frame
    assert df.loc[23, "received"]
    assert (df["dr"] == 5).all()
    assert (df["tx_power_index"] == 0).all()


def test_replay_below_demodulation_floor():
    trace = synthetic_trace(30, -10.0)
    df = replay(trace, dr=5, tx_power_index=0)
    assert not df["received"].any()
    summary = summarize(df)
    assert summary["received"] == 0
    assert summary["pdr"] == 0.0
    assert summary["changes"] == 0
    assert summary["final_dr"] == 5


def test_replay_total_loss_keeps_configuration():
    df = replay(synthetic_trace(25, 5.0, loss_probability=1.0), dr=2, tx_power_index=1, nb_trans=3)
    assert not df["received"].any()
    assert (df["dr"] == 2).all()
    assert (df["nb_trans"] == 3).all()


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"max_dr": 7}, "max_dr"),
        ({"max_dr": -1}, "max_dr"),
        ({"max_tx_power_index": 10}, "max_tx_power_index"),
    ],
)
def test_replay_rejects_limits_outside_regional_tables(kwargs, match):
    # A 20 dB link would push the configuration past the regional tables
    with pytest.raises(ValueError, match=match):
        replay(synthetic_trace(5, 20.0), dr=5, **kwargs)


def test_replay_accepts_tighter_limits():
    df = replay(synthetic_trace(5, 20.0), dr=0, max_dr=3, max_tx_power_index=2)
    assert df["dr"].max() == 3
    assert df["tx_power_index"].max() == 2


def test_summarize_empty_frame():
    summary = summarize(pd.DataFrame(columns=list(REPLAY_COLUMNS)))
    assert summary["uplinks"] == 0
    assert summary["final_dr"] is None


def test_load_trace_defaults_lost_copies(tmp_path: Path) -> None:
    path = tmp_path / "trace.csv"
    path.write_text("f_cnt,snr_db\n1,2.5\n2,3.0\n4,1.0\n")
    trace = load_trace(path)
    assert trace["lost_copies"].tolist() == [0, 0, 0]
    df = replay(trace, dr=5)
    assert df["f_cnt"].tolist() == [1, 2, 4]


def test_load_trace_missing_column(tmp_path: Path) -> None:
    path = tmp_path / "trace.csv"
    path.write_text("f_cnt,rssi\n1,-100\n")
    with pytest.raises(ValueError, match="snr_db"):
        load_trace(path)
