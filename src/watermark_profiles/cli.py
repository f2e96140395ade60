"""Command line interface for watermark_profiles"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .config import Settings, get_settings
from .errors import WatermarkProfilesError
from .io import EXTENSIONS, load_image, normalise_format, save_image
from .logger import log, setup_logger
from .pipeline import ProfilePipeline
from .watermarks import load_watermarks


def parse_watermark_overrides(values: Optional[List[str]]) -> Dict[str, Path]:
    """Turn ``KEY=PATH`` arguments into a mapping"""
    overrides = {}
    for value in values or []:
        key, sep, path = value.partition("=")
        if not sep or not key.strip() or not path.strip():
            raise ValueError(f"Watermark override must look like KEY=PATH, got '{value}'")
        overrides[key.strip()] = Path(path.strip())
    return overrides


class CLI:
    """Command Line Interface for profile rendering"""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="watermark-profiles",
            description="Resize an image to output profiles and apply watermarks"
        )
        self.parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
        self.subparsers = self.parser.add_subparsers(dest='command', help='Available commands')

        self._setup_parsers()

    def _setup_parsers(self):
        """Setup argument parsers for each command"""

        # process
        process_parser = self.subparsers.add_parser(
            'process',
            help='Render every profile for an image'
        )
        process_parser.add_argument('image', help='Source image path')
        process_parser.add_argument('--out', required=True, help='Output directory')
        process_parser.add_argument('--profiles', dest='profiles_config', help='Profiles YAML file')
        process_parser.add_argument(
            '--watermark',
            action='append',
            metavar='KEY=PATH',
            help='Watermark image for a key (repeatable)'
        )
        process_parser.add_argument('--opacity', type=float, help='Watermark opacity (0-1)')
        process_parser.add_argument(
            '--position',
            choices=['top-left', 'top-right', 'bottom-left', 'bottom-right'],
            help='Watermark corner'
        )
        process_parser.add_argument('--padding', type=int, help='Watermark padding in pixels')
        process_parser.add_argument('--format', dest='output_format', help='Output format (JPEG, PNG, WEBP)')
        process_parser.add_argument('--parallel', type=int, default=0, help='Render profiles on N threads')

        # profiles
        profiles_parser = self.subparsers.add_parser(
            'profiles',
            help='List configured output profiles'
        )
        profiles_parser.add_argument('--profiles', dest='profiles_config', help='Profiles YAML file')

    def _settings(self, args) -> Settings:
        overrides = {
            key: getattr(args, key, None)
            for key in ('profiles_config', 'opacity', 'position', 'padding', 'output_format')
        }
        overrides = {key: value for key, value in overrides.items() if value is not None}
        # Environment-only configuration is shared and cached
        return Settings(**overrides) if overrides else get_settings()

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run the CLI"""
        args = self.parser.parse_args(argv)

        if not args.command:
            self.parser.print_help()
            return 0

        # Dispatch to command handler
        command_method = getattr(self, f'cmd_{args.command}')
        try:
            return command_method(args)
        except (WatermarkProfilesError, ValueError, OSError) as e:
            log.error(f"{args.command} failed: {e}")
            print(f"Error: {e}", file=sys.stderr)
            return 1

    def cmd_process(self, args) -> int:
        """Render all profiles for one image"""
        settings = self._settings(args)
        setup_logger(settings.log_level, settings.log_file)

        source_path = Path(args.image)
        output_dir = Path(args.out)
        output_format = normalise_format(settings.output_format)
        extension = EXTENSIONS.get(output_format, f".{output_format.lower()}")
        output_dir.mkdir(parents=True, exist_ok=True)

        # Only load the watermarks some profile actually uses
        paths = settings.watermark_paths()
        paths.update(parse_watermark_overrides(args.watermark))
        wanted = {profile.watermark for profile in settings.profiles if profile.has_watermark}
        watermarks = load_watermarks(
            {key: path for key, path in paths.items() if key in wanted},
            opacity=settings.opacity,
            max_workers=settings.load_workers,
        )

        source = load_image(source_path)

        def export(buffer, profile):
            destination = output_dir / f"{source_path.stem}_{profile.name}{extension}"
            return save_image(buffer, destination, output_format, profile.quality)

        pipeline = ProfilePipeline.from_settings(settings, watermarks=watermarks, exporter=export)
        if args.parallel > 0:
            results = pipeline.run_parallel(source, max_workers=args.parallel)
        else:
            results = pipeline.run(source)

        manifest = {
            "source": str(source_path),
            "processed_at": datetime.now().isoformat(),
            "format": output_format,
            "outputs": [
                {
                    "profile": result.name,
                    "width": result.buffer.width,
                    "height": result.buffer.height,
                    "crop": result.profile.crop,
                    "watermark": result.profile.watermark,
                    "quality": result.profile.quality,
                    "path": str(result.output),
                }
                for result in results
            ],
        }
        manifest_path = output_dir / f"{source_path.stem}.json"
        with open(manifest_path, 'w', encoding='utf-8') as f:
            json.dump(manifest, f, indent=2)

        for result in results:
            print(f"{result.name}: {result.buffer.width}x{result.buffer.height} -> {result.output}")
        return 0

    def cmd_profiles(self, args) -> int:
        """List profiles"""
        settings = self._settings(args)
        for profile in settings.profiles:
            mode = "crop" if profile.crop else "fit"
            print(
                f"{profile.name}: {profile.max_width}x{profile.max_height} {mode} "
                f"watermark={profile.watermark} quality={profile.quality}"
            )
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    cli = CLI()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
