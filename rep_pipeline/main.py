"""
Replay a recorded session through the classification engine.
"""
import argparse
import logging
import sys
from pathlib import Path
from .config import PipelineConfig, load_config
from .core.interfaces import ClassifierLoadError, Exercise, RepPipelineError
from .data.data_loader import SessionLoader
from .engine import ClassificationEngine
from .ml.classifier import SklearnClassifier
from .utils import setup_logging

logger = logging.getLogger("RepPipeline")


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Exercise classification and rep counting')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    replay_parser = subparsers.add_parser('replay', help='Replay a recorded session')
    replay_parser.add_argument('--input', required=True, help='Session CSV file')
    replay_parser.add_argument('--model', required=True, help='joblib classifier model')
    replay_parser.add_argument('--encoder', default=None, help='joblib label encoder')
    replay_parser.add_argument('--config', default=None, help='JSON pipeline config')
    replay_parser.add_argument('--policy', choices=['threshold', 'edge'], default=None,
                               help='Rep counting policy')
    replay_parser.add_argument('--window-size', type=int, default=None,
                               help='Window size in samples')
    replay_parser.add_argument('--classify-interval', type=int, default=None,
                               help='Ticks between classifications')
    replay_parser.add_argument('--log-file', default=None, help='Also log to this file')
    replay_parser.add_argument('--verbose', action='store_true', help='Debug logging')

    return parser.parse_args(argv)


def build_engine(args) -> ClassificationEngine:
    config = load_config(args.config) if args.config else PipelineConfig()
    config = config.with_overrides(
        policy=args.policy,
        window_size=args.window_size,
        classify_interval=args.classify_interval
    )

    try:
        classifier = SklearnClassifier.load(args.model, args.encoder)
    except ClassifierLoadError as e:
        logger.error(f"{e}; continuing without classification")
        classifier = None

    return ClassificationEngine(classifier, config=config)


def replay_session(engine: ClassificationEngine, session_path: str) -> dict:
    """Feed every phone tick of a session into the engine and return final counts."""
    path = Path(session_path)
    loader = SessionLoader(str(path.parent))

    for timestamp, phone, companion in loader.replay(path.name):
        engine.ingest(phone, companion, timestamp=timestamp)

    return {exercise: engine.count(exercise) for exercise in Exercise}


def main(argv=None) -> int:
    args = parse_arguments(argv)
    if args.command != 'replay':
        print("Usage: python -m rep_pipeline.main replay --input SESSION --model MODEL")
        return 2

    setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)

    try:
        engine = build_engine(args)
        counts = replay_session(engine, args.input)
    except RepPipelineError as e:
        logger.error(str(e))
        return 1

    print(f"\nFinal label: {engine.label}")
    for exercise, count in counts.items():
        print(f"{exercise.value}: {count} reps")
    return 0


if __name__ == '__main__':
    sys.exit(main())
