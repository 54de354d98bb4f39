"""
CLI entry point for SubAlign with argument parsing and environment variable loading.
"""
import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from rich.table import Table

from . import __version__
from .config import AlignmentConfig, BoundaryScoringParams, ConfidenceThresholds, REFERENCE_THRESHOLDS, SPEECH_THRESHOLDS, SearchParams, SilenceParams
from .episodes import SUBTITLE_EXTENSIONS, VIDEO_EXTENSIONS, find_english_episode_file, find_episode_file, normalize_episode_token
from .errors import AlignmentError
from .logging import setup_logging


DEFAULT_OFFSETS_FILE = "sub-offsets.json";


class SubAlignCLI:
    """
    Command line interface for SubAlign offset estimation.

    Supports explicit file arguments or episode lookup in media directories,
    with environment variable defaults for paths.
    """

    def __init__( self ):
        self.parser = self._create_parser();
        self.args = None;
        self.logger = None;
        self.offsets_file_default = DEFAULT_OFFSETS_FILE;
        self.work_dir_default = None;

    def _create_parser( self ):
        """Create argument parser with all SubAlign options."""
        parser = argparse.ArgumentParser(
            prog="subalign",
            description="Estimate JP/EN subtitle offsets against an embedded reference track or detected speech",
            epilog="Environment variables: SUBALIGN_OFFSETS_FILE, SUBALIGN_WORK_DIR, SUBALIGN_LOG_DIR"
        );

        inputs = parser.add_argument_group( "inputs" );
        inputs.add_argument( "--video", "-v", type=Path, dest="video", help="Episode video file (.mkv, .mp4, ...)" );
        inputs.add_argument( "--jp", type=Path, dest="jp", help="Japanese subtitle file (.ass or .srt)" );
        inputs.add_argument( "--en", type=Path, dest="en", help="English subtitle file (.ass or .srt)" );
        inputs.add_argument( "--episode", "-e", help="Episode token such as s4e30 (registry key, file lookup)" );
        inputs.add_argument( "--videos-dir", type=Path, help="Directory searched for the episode video" );
        inputs.add_argument( "--jp-subs-dir", type=Path, help="Directory searched for the JP subtitle file" );
        inputs.add_argument( "--en-subs-dir", type=Path, help="Directory searched for the EN subtitle file" );

        parser.add_argument(
            "--mode",
            choices=[ "reference", "speech" ],
            default="reference",
            help="Ground truth: embedded subtitle track (default) or detected speech"
        );

        search = parser.add_argument_group( "search" );
        search.add_argument( "--sample-sec", type=float, default=1800.0, help="Seconds analyzed from the start (default: 1800)" );
        search.add_argument( "--min-offset-ms", type=int, default=-12000, help="Min offset to test (default: -12000)" );
        search.add_argument( "--max-offset-ms", type=int, default=12000, help="Max offset to test (default: 12000)" );
        search.add_argument( "--coarse-step-ms", type=int, default=100, help="Coarse search step (default: 100)" );
        search.add_argument( "--fine-step-ms", type=int, default=20, help="Fine search step (default: 20)" );
        search.add_argument( "--boundary-scale-ms", type=float, default=320.0, help="Boundary decay scale in speech mode (default: 320)" );

        confidence = parser.add_argument_group( "confidence (defaults depend on --mode)" );
        confidence.add_argument( "--high-min", type=float, help="Minimum metric for high confidence" );
        confidence.add_argument( "--high-gap", type=float, help="Minimum ratio gap for high confidence" );
        confidence.add_argument( "--medium-min", type=float, help="Minimum metric for medium confidence" );
        confidence.add_argument( "--medium-gap", type=float, help="Minimum ratio gap for medium confidence" );

        silence = parser.add_argument_group( "silence detection (speech mode)" );
        silence.add_argument( "--audio-stream", default="0:a:0", help="ffmpeg audio stream selector (default: 0:a:0)" );
        silence.add_argument( "--silence-noise-db", type=float, default=-30.0, help="silencedetect noise floor in dB (default: -30)" );
        silence.add_argument( "--silence-min-sec", type=float, default=0.25, help="Minimum silence length (default: 0.25)" );

        output = parser.add_argument_group( "output" );
        output.add_argument( "--offsets-file", type=Path, help="Offsets registry JSON (default: $SUBALIGN_OFFSETS_FILE or sub-offsets.json)" );
        output.add_argument( "--write", action="store_true", help="Save the offsets into the registry" );
        output.add_argument( "--result-json", type=Path, help="Write the full alignment result as JSON" );
        output.add_argument( "--export-shifted", type=Path, metavar="DIR", help="Write shifted copies of both subtitle files into DIR" );
        output.add_argument( "--work-dir", type=Path, help="Directory for temporary files (default: $SUBALIGN_WORK_DIR or system temp)" );
        output.add_argument( "--keep-temp", action="store_true", help="Keep temporary files" );

        parser.add_argument( "--verbose", action="store_true", help="Print top offset candidates" );
        parser.add_argument( "--debug", action="store_true", help="Enable debug mode with verbose output" );
        parser.add_argument( "--version", action="version", version=f"%(prog)s {__version__}" );

        return parser;

    def _load_environment( self ):
        """Load path defaults from .env file and system environment."""
        env_file = Path( ".env" );
        if env_file.exists():
            load_dotenv( env_file );

        self.offsets_file_default = os.getenv( "SUBALIGN_OFFSETS_FILE", DEFAULT_OFFSETS_FILE );
        self.work_dir_default = os.getenv( "SUBALIGN_WORK_DIR" );

    def _resolve_inputs( self ):
        """Fill missing file arguments from the episode directories."""
        args = self.args;
        if args.episode:
            token = normalize_episode_token( args.episode );
            if token:
                args.episode = token;

        lookups = (
            ( "video", args.videos_dir, VIDEO_EXTENSIONS ),
            ( "jp", args.jp_subs_dir, SUBTITLE_EXTENSIONS ),
        );
        for attr, directory, extensions in lookups:
            if getattr( args, attr ) is None and directory is not None and args.episode:
                setattr( args, attr, find_episode_file( directory, args.episode, extensions ) );

        # EN falls back to global numbering derived from the JP season layout
        if args.en is None and args.en_subs_dir is not None and args.episode:
            args.en = find_english_episode_file( args.en_subs_dir, args.episode, args.jp_subs_dir );

        if args.offsets_file is None:
            args.offsets_file = Path( self.offsets_file_default );
        if args.work_dir is None and self.work_dir_default:
            args.work_dir = Path( self.work_dir_default );

    def _validate_arguments( self ):
        """Validate parsed arguments."""
        errors = [];
        args = self.args;

        for attr, label in ( ( "video", "Video" ), ( "jp", "JP subtitle" ), ( "en", "EN subtitle" ) ):
            path = getattr( args, attr );
            if path is None:
                errors.append( f"{label} file not given and not found for episode {args.episode or '(none)'}" );
            elif not path.exists():
                errors.append( f"{label} file not found: {path}" );

        if args.episode and not normalize_episode_token( args.episode ):
            errors.append( f"Episode must look like s4e30, got: {args.episode}" );
        if args.write and not args.episode:
            errors.append( "--write needs --episode to key the registry entry" );

        if args.sample_sec <= 0:
            errors.append( "--sample-sec must be > 0" );
        if args.max_offset_ms <= args.min_offset_ms:
            errors.append( "--max-offset-ms must be greater than --min-offset-ms" );
        if args.coarse_step_ms <= 0 or args.fine_step_ms <= 0:
            errors.append( "--coarse-step-ms and --fine-step-ms must be > 0" );
        if args.silence_min_sec <= 0:
            errors.append( "--silence-min-sec must be > 0" );

        return errors;

    def parse_args( self, argv=None ):
        """Parse command line arguments and validate configuration."""
        self.args = self.parser.parse_args( argv );
        self.logger = setup_logging( debug=self.args.debug );

        self._load_environment();
        self._resolve_inputs();

        errors = self._validate_arguments();
        if errors:
            self.logger.error( "Configuration errors:" );
            for error in errors:
                self.logger.error( f"  - {error}" );
            sys.exit( 1 );

        self.logger.info( f"SubAlign v{__version__} starting..." );
        if self.args.episode:
            self.logger.info( f"Episode: {self.args.episode}" );
        self.logger.info( f"Video: {self.args.video}" );
        self.logger.info( f"JP: {self.args.jp}" );
        self.logger.info( f"EN: {self.args.en}" );
        self.logger.info( f"Mode: {self.args.mode}" );

        return self.args;

    def build_config( self ) -> AlignmentConfig:
        """Assemble the tunables from parsed arguments."""
        args = self.args;
        base = REFERENCE_THRESHOLDS if args.mode == "reference" else SPEECH_THRESHOLDS;
        thresholds = ConfidenceThresholds(
            high_min=base.high_min if args.high_min is None else args.high_min,
            high_gap=base.high_gap if args.high_gap is None else args.high_gap,
            medium_min=base.medium_min if args.medium_min is None else args.medium_min,
            medium_gap=base.medium_gap if args.medium_gap is None else args.medium_gap
        );

        return AlignmentConfig(
            search=SearchParams(
                min_offset_ms=args.min_offset_ms,
                max_offset_ms=args.max_offset_ms,
                coarse_step_ms=args.coarse_step_ms,
                fine_step_ms=args.fine_step_ms
            ),
            boundary=BoundaryScoringParams( scale_ms=args.boundary_scale_ms ),
            reference_thresholds=thresholds if args.mode == "reference" else REFERENCE_THRESHOLDS,
            speech_thresholds=thresholds if args.mode == "speech" else SPEECH_THRESHOLDS,
            silence=SilenceParams(
                noise=f"{args.silence_noise_db:g}dB",
                min_silence_sec=args.silence_min_sec,
                audio_stream=args.audio_stream
            ),
            sample_sec=args.sample_sec
        );

    def display_top_candidates( self, alignment ):
        """Render the ranked candidates of both tracks as Rich tables."""
        for name, result in ( ( "JP", alignment.jp ), ( "EN", alignment.en ) ):
            table = Table( title=f"{name} top offsets" );
            table.add_column( "Offset (ms)", justify="right" );
            if result.boundary_score is not None:
                table.add_column( "Boundary", justify="right" );
            table.add_column( "Overlap", justify="right" );
            table.add_column( "Score", justify="right" );

            for sample in result.top:
                row = [ str( sample.offset_ms ) ];
                if result.boundary_score is not None:
                    row.append( f"{( sample.boundary_score or 0.0 ) * 100:.1f}%" );
                row.append( f"{sample.overlap_ratio * 100:.1f}%" );
                row.append( f"{sample.score:.4f}" );
                table.add_row( *row );

            self.logger.console.print( table );


def main( argv=None ):
    """Main entry point for the SubAlign CLI."""
    cli = SubAlignCLI();
    args = cli.parse_args( argv );

    from .aligner import EpisodeAligner;
    from .registry import OffsetRegistry;
    from .subtitles import shifted_output_path, write_shifted_subtitles;

    try:
        config = cli.build_config();
        aligner = EpisodeAligner(
            config=config,
            work_dir=args.work_dir,
            keep_temp=args.keep_temp,
            debug=args.debug
        );
        alignment = aligner.align( args.video, args.jp, args.en, episode=args.episode, mode=args.mode );

        if args.verbose:
            cli.display_top_candidates( alignment );

        if args.export_shifted:
            write_shifted_subtitles( args.jp, alignment.jp.offset_ms, shifted_output_path( args.jp, args.export_shifted ) );
            write_shifted_subtitles( args.en, alignment.en.offset_ms, shifted_output_path( args.en, args.export_shifted ) );

        if args.write:
            registry = OffsetRegistry.load( args.offsets_file );
            registry.record( args.episode, jp_offset_ms=alignment.jp.offset_ms, en_offset_ms=alignment.en.offset_ms );
            registry.save();
        else:
            cli.logger.info( "Dry run for offsets file (not written). Add --write to save." );

        if args.result_json:
            args.result_json.parent.mkdir( parents=True, exist_ok=True );
            result = alignment.to_dict();
            result['writeApplied'] = args.write;
            result['offsetsFile'] = str( args.offsets_file.resolve() );
            with open( args.result_json, "w", encoding="utf-8" ) as f:
                json.dump( result, f, indent=2 );
                f.write( "\n" );
            cli.logger.info( f"Result JSON -> {args.result_json}" );

    except AlignmentError as e:
        cli.logger.error( str( e ) );
        sys.exit( 1 );
    except KeyboardInterrupt:
        cli.logger.warning( "Interrupted by user" );
        sys.exit( 130 );
    except Exception as e:
        cli.logger.error( f"Unexpected error: {e}" );
        if args.debug:
            raise;
        sys.exit( 1 );


if __name__ == "__main__":
    main();
