"""ModalAssurance command-line interface."""
from __future__ import annotations

import argparse
import logging
import sys
import uuid


def _non_negative_int(text):
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError("must be >= 0, got %d" % value)
    return value


def _first_line(exc) -> str:
    lines = str(exc).splitlines()
    return lines[0] if lines else exc.__class__.__name__


def _build_parser():
    parser = argparse.ArgumentParser(
        prog="modal-assurance",
        description="Modal Assurance Criterion (MAC) between two sets of mode shapes",
    )
    parser.add_argument("--version", action="version", version="ModalAssurance v0.1.0")

    sub = parser.add_subparsers(dest="command")

    cmp_ = sub.add_parser("compare", help="Compute and report the MAC matrix of two mode sets")
    cmp_.add_argument("set1", help="First mode set (.npy, .npz, .csv, .txt)")
    cmp_.add_argument("set2", help="Second mode set (.npy, .npz, .csv, .txt)")
    cmp_.add_argument("--freq1", help="Natural frequencies of the first set")
    cmp_.add_argument("--freq2", help="Natural frequencies of the second set")
    cmp_.add_argument("--label1", help="Label of the first set")
    cmp_.add_argument("--label2", help="Label of the second set")
    cmp_.add_argument("--on-degenerate", choices=["raise", "nan"],
                      help="Zero-norm mode handling (default from config: raise)")
    cmp_.add_argument("--pairing", choices=["greedy", "optimal"],
                      help="Mode pairing method (default from config: greedy)")
    cmp_.add_argument("--precision", type=_non_negative_int, default=2, help="Decimals in the MAC table")
    cmp_.add_argument("--plot-dir", help="Render the MAC charts into this directory")
    cmp_.add_argument("--colormap")
    cmp_.add_argument("--figures", help="1 = 3D chart only, 2 = 3D chart + heatmap")
    cmp_.add_argument("--show-values", help="'yes' or 'no'")
    cmp_.add_argument("--font-size")
    cmp_.add_argument("--config", help="YAML configuration file")
    cmp_.add_argument("--log-dir", help="Write structured logs to this directory")

    return parser


def _display_options(args, config) -> dict:
    options = config.display_options()
    overrides = {
        "colormap": args.colormap,
        "font_size": args.font_size,
        "n_figures": args.figures,
        "show_values": args.show_values,
    }
    options.update({k: v for k, v in overrides.items() if v is not None})
    return options


def _do_compare(args):
    import yaml

    from modal_assurance.analysis.correlation import correlate, format_mac_matrix, generate_report
    from modal_assurance.analysis.io import load_mode_set
    from modal_assurance.core.config import AppConfig
    from modal_assurance.core.logger import StructuredLogger

    try:
        config = AppConfig(args.config)
        settings = config.mac_settings()
    except (yaml.YAMLError, ValueError, OSError) as exc:
        print("error: invalid config %s: %s" % (args.config, _first_line(exc)), file=sys.stderr)
        return 2
    on_degenerate = args.on_degenerate or settings["on_degenerate"]
    pairing = args.pairing or settings["pairing"]

    structured = None
    session_id = uuid.uuid4().hex[:12]
    if args.log_dir:
        structured = StructuredLogger(log_dir=args.log_dir, level=config.get("logging.level", "INFO"))
        structured.log_operation(session_id, "comparison.started", user_action="compare",
                                 data={"set1": args.set1, "set2": args.set2})

    try:
        set1 = load_mode_set(args.set1, args.freq1, name=args.label1)
        set2 = load_mode_set(args.set2, args.freq2, name=args.label2)
        report = correlate(set1, set2, thresholds=settings["thresholds"],
                           method=pairing, on_degenerate=on_degenerate)
    except (ValueError, OSError) as exc:
        print("error: %s" % _first_line(exc), file=sys.stderr)
        if structured:
            structured.app.error("Comparison failed: %s", exc)
            structured.log_operation(session_id, "comparison.failed", data={"error": str(exc)})
            structured.close()
        return 2

    print("MAC matrix (rows: %s, columns: %s)" % (set1.name, set2.name))
    print(format_mac_matrix(report.mac_matrix, precision=args.precision))
    print()
    print(generate_report(report))

    saved = []
    if args.plot_dir:
        from modal_assurance.plotting.display import DisplayConfig
        from modal_assurance.plotting.render import render_mac

        options = _display_options(args, config)
        options["label_1"] = set1.name
        options["label_2"] = set2.name
        display = DisplayConfig.from_mapping(options)
        saved = render_mac(report.mac_matrix, display).save(args.plot_dir)
        for path in saved:
            print("  Chart: %s" % path)

    if structured:
        structured.log_correlation(session_id, set1, set2, report, charts=saved,
                                   metadata={"set1_path": args.set1, "set2_path": args.set2,
                                             "on_degenerate": on_degenerate})
        structured.close()
    return 0


def main(argv=None):
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "compare":
        return _do_compare(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
