# preview_world.py

"""
================================================================================
WORLD PREVIEW SCRIPT
================================================================================
This script is a command-line tool for generating a world and writing PNG
previews of its biome map and its four scalar fields (height, magnetism,
temperature, moisture). It is a debug visualisation only; nothing it writes
is read back.

Usage:
    python preview_world.py --seed 1234 --width 200 --height 200
    python preview_world.py --config path/to/your/config.json
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import time
import numpy as np
from PIL import Image
from tqdm import tqdm

# Add project root to Python path to allow importing from biome_world
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from biome_world.pipeline import GenerationPipeline
from biome_world.tileset import Season
from biome_world import color_maps
from biome_world import config as DEFAULTS


def save_preview(color_array: np.ndarray, directory: str, name: str, scale: int) -> str:
    """Saves a (height, width, 3) color array as a PNG, upscaled with nearest neighbour."""
    os.makedirs(directory, exist_ok=True)
    file_path = os.path.join(directory, f"{name}.png")
    img = Image.fromarray(color_array)
    if scale > 1:
        img = img.resize((img.width * scale, img.height * scale), Image.Resampling.NEAREST)
    img.save(file_path, 'PNG')
    return file_path


def load_world_params(config_path: str, logger: logging.Logger) -> dict:
    logger.info(f"Loading configuration from: {config_path}")
    with open(config_path, 'r') as f:
        config = json.load(f)
    return config.get('world_generation_parameters', {})


def preview_world(world_params: dict, output_dir: str, scale: int = 1):
    """Generates a world from `world_params` and writes one PNG per view."""
    logger = logging.getLogger("Preview")

    pipeline = GenerationPipeline(config=world_params, logger=logger)
    start_time = time.perf_counter()
    with tqdm(total=len(pipeline.pass_names), desc="Generating World") as bar:
        def advance(pass_name):
            bar.set_postfix_str(pass_name)
            bar.update(1)
        snapshot = pipeline.run(progress=advance)

    # --- Pre-compute Color LUTs ---
    logger.info("Pre-computing color lookup tables...")
    views = {
        "biomes": color_maps.get_biome_color_array(
            snapshot.biomes.cells, color_maps.create_biome_color_lut(pipeline.registry)),
        "height": color_maps.get_field_color_array(
            snapshot.fields.height, color_maps.create_height_lut()),
        "magnetism": color_maps.get_field_color_array(
            snapshot.fields.magnetism, color_maps.create_magnetism_lut()),
        "temperature": color_maps.get_field_color_array(
            snapshot.fields.temperature, color_maps.create_temperature_lut()),
        "moisture": color_maps.get_field_color_array(
            snapshot.fields.moisture, color_maps.create_moisture_lut()),
    }

    base_output_dir = os.path.join(output_dir, f"seed_{snapshot.seed}")
    for name, color_array in views.items():
        path = save_preview(color_array, base_output_dir, name, scale)
        logger.info(f"  - {name.capitalize()} preview saved to: {path}")

    counts = np.unique(snapshot.biomes.cells, return_counts=True)
    logger.info("--- Biome Coverage ---")
    for biome_id, count in zip(*counts):
        definition = pipeline.registry[int(biome_id)]
        logger.info(f"  - {definition.name}: {count} tiles ({100 * count / snapshot.biomes.cells.size:.1f}%)")

    logger.info(f"Preview complete! Total time: {time.perf_counter() - start_time:.2f} seconds.")
    return snapshot


# --- Command-Line Interface ---
if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Preview generator for procedural biome worlds.")
    parser.add_argument("--config", type=str, help="Optional JSON configuration file.")
    parser.add_argument("--seed", type=int, help=f"World seed (default {DEFAULTS.DEFAULT_SEED}).")
    parser.add_argument("--width", type=int, help="World width in tiles.")
    parser.add_argument("--height", type=int, help="World height in tiles.")
    parser.add_argument("--season", choices=[s.value for s in Season], help="Season used to resolve tiles.")
    parser.add_argument("--scale", type=int, default=3, help="Pixels per tile in the saved images.")
    parser.add_argument("--output", type=str, default="previews", help="Output directory.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )

    world_params = {}
    if args.config:
        try:
            world_params = load_world_params(args.config, logging.getLogger("Preview"))
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logging.getLogger("Preview").critical(f"Failed to load or parse config file: {e}")
            sys.exit(1)

    # Command-line flags win over the config file.
    for key, value in (('seed', args.seed), ('world_width', args.width),
                       ('world_height', args.height), ('season', args.season)):
        if value is not None:
            world_params[key] = value

    preview_world(world_params, args.output, args.scale)
