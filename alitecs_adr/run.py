import argparse
import configparser
import json
import logging
from pathlib import Path

from .handler import Handler
from .region import DEFAULT_INSTALLATION_MARGIN, MAX_DR, MAX_TX_POWER_INDEX
from .replay import load_trace, replay, summarize, synthetic_trace
from .request_loader import load_request

# Configuration du logger pour afficher les informations
logging.basicConfig(level=logging.INFO, format="%(message)s")

# Clés de la section [replay] et type attendu
_REPLAY_CONFIG_KEYS = {
    "installation_margin": float,
    "uplinks": int,
    "snr": float,
    "snr_std": float,
    "loss": float,
    "seed": int,
}


def _load_replay_defaults(path: str) -> dict:
    """Return the ``[replay]`` options of the INI file *path*."""

    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf8")
    if not cp.has_section("replay"):
        return {}
    defaults = {}
    for key, cast in _REPLAY_CONFIG_KEYS.items():
        if key in cp["replay"]:
            defaults[key] = cast(cp["replay"][key])
    return defaults


def _build_parser() -> tuple[argparse.ArgumentParser, argparse.ArgumentParser]:
    parser = argparse.ArgumentParser(
        description="ALITECS ADR – Mode CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Exemples :\n"
            "  # Décision pour un état de device enregistré\n"
            "  python -m alitecs_adr.run decide request.json\n\n"
            "  # Rejeu d'un lien synthétique à 5 dB avec 10 % de pertes\n"
            "  python -m alitecs_adr.run replay --uplinks 200 --snr 5 --loss 0.1 \\\n"
            "    --seed 3 --output replay.csv --plot figures/replay\n"
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Trace chaque décision ADR",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    decide_parser = subparsers.add_parser(
        "decide", help="Calcule la prochaine configuration d'un device"
    )
    decide_parser.add_argument(
        "request", help="Fichier JSON/INI décrivant l'état du device"
    )

    replay_parser = subparsers.add_parser(
        "replay", help="Rejoue une trace d'uplinks à travers l'algorithme ADR"
    )
    replay_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Fichier INI dont la section [replay] fournit les valeurs par défaut",
    )
    replay_parser.add_argument(
        "--trace",
        type=str,
        default=None,
        help="Trace CSV (colonnes f_cnt, snr_db et optionnellement lost_copies)",
    )
    replay_parser.add_argument(
        "--uplinks", type=int, default=100, help="Nombre d'uplinks de la trace synthétique"
    )
    replay_parser.add_argument(
        "--snr",
        type=float,
        default=0.0,
        help="SNR moyen du lien à l'index de puissance 0 (dB)",
    )
    replay_parser.add_argument(
        "--snr-std",
        dest="snr_std",
        type=float,
        default=0.0,
        help="Écart-type du SNR (dB)",
    )
    replay_parser.add_argument(
        "--loss",
        type=float,
        default=0.0,
        help="Probabilité de perte de chaque transmission (0-1)",
    )
    replay_parser.add_argument(
        "--seed", type=int, default=0, help="Graine aléatoire pour reproduire la trace"
    )
    replay_parser.add_argument("--dr", type=int, default=0, help="DR initial")
    replay_parser.add_argument(
        "--tx-power-index",
        dest="tx_power_index",
        type=int,
        default=0,
        help="Index de puissance TX initial",
    )
    replay_parser.add_argument(
        "--nb-trans", dest="nb_trans", type=int, default=1, help="NbTrans initial"
    )
    replay_parser.add_argument(
        "--installation-margin",
        dest="installation_margin",
        type=float,
        default=DEFAULT_INSTALLATION_MARGIN,
        help="Marge d'installation (dB)",
    )
    replay_parser.add_argument(
        "--output",
        type=str,
        help="Fichier CSV pour sauvegarder la chronologie (optionnel)",
    )
    replay_parser.add_argument(
        "--plot",
        type=str,
        help="Chemin de base (sans extension) de la figure à générer",
    )
    replay_parser.add_argument(
        "--formats",
        default="png",
        help="Liste de formats séparés par des virgules",
    )
    return parser, replay_parser


def _run_decide(args, parser):
    try:
        request = load_request(args.request)
    except (OSError, ValueError) as exc:
        parser.error(f"impossible de lire {args.request}: {exc}")
    result = Handler().handle(request)
    print(json.dumps(result.to_dict()))
    return result


def _run_replay(args, parser):
    if args.uplinks <= 0:
        parser.error("--uplinks must be > 0")
    if not (0.0 <= args.loss <= 1.0):
        parser.error("--loss must be within [0, 1]")
    if not (0 <= args.dr <= MAX_DR):
        parser.error(f"--dr must be within [0, {MAX_DR}]")
    if not (0 <= args.tx_power_index <= MAX_TX_POWER_INDEX):
        parser.error(f"--tx-power-index must be within [0, {MAX_TX_POWER_INDEX}]")

    if args.trace:
        try:
            trace = load_trace(args.trace)
        except (OSError, ValueError) as exc:
            parser.error(f"impossible de lire {args.trace}: {exc}")
        logging.info(f"Trace chargée depuis {args.trace} ({len(trace)} uplinks)")
    else:
        trace = synthetic_trace(
            args.uplinks,
            args.snr,
            snr_std_db=args.snr_std,
            loss_probability=args.loss,
            seed=args.seed,
        )

    df = replay(
        trace,
        dr=args.dr,
        tx_power_index=args.tx_power_index,
        nb_trans=args.nb_trans,
        installation_margin=args.installation_margin,
    )
    summary = summarize(df)
    logging.info(
        "Uplinks reçus : %d/%d (PDR %.2f %%), %d changements de configuration",
        summary["received"],
        summary["uplinks"],
        summary["pdr"] * 100,
        summary["changes"],
    )
    logging.info(
        "Configuration finale : DR%s, index TX %s, NbTrans %s",
        summary["final_dr"],
        summary["final_tx_power_index"],
        summary["final_nb_trans"],
    )

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out_path, index=False)
        logging.info(f"Résultats enregistrés dans {out_path}")

    if args.plot:
        from .utils.plotting import parse_formats, plot_replay, save_multi_format

        fig = plot_replay(df)
        for path in save_multi_format(fig, args.plot, parse_formats(args.formats)):
            logging.info(f"Figure enregistrée dans {path}")

    return df


def main(argv=None):
    parser, replay_parser = _build_parser()

    # Preliminary parse to load configuration defaults
    pre_args, _ = parser.parse_known_args(argv)
    if pre_args.command == "replay" and pre_args.config:
        if not Path(pre_args.config).is_file():
            parser.error(f"fichier de configuration introuvable : {pre_args.config}")
        try:
            replay_parser.set_defaults(**_load_replay_defaults(pre_args.config))
        except (configparser.Error, ValueError) as exc:
            parser.error(f"configuration invalide : {exc}")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command == "decide":
        return _run_decide(args, parser)
    return _run_replay(args, parser)


if __name__ == "__main__":
    main()
