"""Compare l'effet de la marge d'installation sur un même lien."""

import os
import sys
import argparse

# Ajoute le répertoire parent pour pouvoir importer le package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pandas as pd

from alitecs_adr.replay import replay, summarize, synthetic_trace

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Compare plusieurs marges d'installation")
    parser.add_argument("--uplinks", type=int, default=300, help="Nombre d'uplinks")
    parser.add_argument("--snr", type=float, default=2.0, help="SNR moyen à pleine puissance (dB)")
    parser.add_argument("--snr-std", type=float, default=3.0, help="Écart-type du SNR (dB)")
    parser.add_argument("--loss", type=float, default=0.05, help="Probabilité de perte par transmission")
    parser.add_argument("--seed", type=int, default=1, help="Graine aléatoire")
    parser.add_argument(
        "--margins",
        type=float,
        nargs="+",
        default=[0.0, 5.0, 10.0, 15.0],
        help="Marges d'installation à comparer (dB)",
    )
    args = parser.parse_args()

    trace = synthetic_trace(
        args.uplinks,
        args.snr,
        snr_std_db=args.snr_std,
        loss_probability=args.loss,
        seed=args.seed,
    )
    rows = []
    for margin in args.margins:
        summary = summarize(replay(trace, installation_margin=margin))
        rows.append({"installation_margin": margin, **summary})
    print(pd.DataFrame(rows).to_string(index=False))
