"""Contains the class that runs repeated and parallel generation attempts."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from multiprocessing import Pool
import random
from typing import Sequence, TYPE_CHECKING

import numpy as np
import psutil

import constants
from enums import HexLayout
from model.hex_wfc import HexWFC

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from model.hex_tileset import HexTileset
    from model.hex_wfc import BoundaryPredicate

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of a (possibly retried) generation run."""

    # True if the last attempt collapsed every cell.
    success: bool
    # Seed of the random source used for the last attempt.
    seed: int
    # Number of attempts made.
    attempts: int
    # (height, width) array of tile indices of the last attempt (-1 for cells without a single tile).
    tile_grid: NDArray[np.int_]


class HexWFCManager:
    """Runs generation attempts on a hex WFC model until one succeeds.

    Since a contradiction ends an attempt without backtracking, a failed attempt is simply retried with the next seed.
    Independent runs (e.g. for several seeds) can be distributed over worker processes, each with its own model.
    """

    # The model all sequential attempts are executed on.
    model: HexWFC

    def __init__(
        self,
        width: int,
        height: int,
        tileset: HexTileset,
        on_boundary: BoundaryPredicate | None = None,
        recompute_interval: int = constants.ENTROPY_RECOMPUTE_INTERVAL_DEFAULT,
        layout: HexLayout = HexLayout.CLASSIC,
    ) -> None:
        """Initializes the manager and its model.

        Args:
            width: The width of the grid (in cells).
            height: The height of the grid (in cells).
            tileset: Tile weights and the propagator table.
            on_boundary: Boundary predicate of the model. It has to be picklable to be used with 'generate_parallel()'.
            recompute_interval: Number of steps between exact recomputations of the entropy sums (0 disables it).
            layout: The neighbor offset table of the grid.
        """
        self.model = HexWFC(width, height, tileset, on_boundary, recompute_interval, layout)

    def generate_with_retries(
        self, max_attempts: int = constants.WFC_MAX_ATTEMPTS_DEFAULT, seed: int | None = None
    ) -> GenerationResult:
        """Repeats generation attempts until one succeeds or 'max_attempts' is reached.

        Attempt n uses a random source seeded with 'seed + n', so a run is reproducible from its seed.

        Args:
            max_attempts: The maximum number of attempts.
            seed: The seed of the first attempt. Defaults to a random seed.

        Returns:
            The result of the last attempt.
        """
        if max_attempts < 1:
            raise ValueError(f"At least one attempt is needed, got {max_attempts}.")
        if seed is None:
            seed = random.randint(0, constants.RANDOM_SEED_MAX)

        attempt_seed = seed
        for attempt in range(max_attempts):
            attempt_seed = seed + attempt
            success = self.model.generate(random.Random(attempt_seed).random)

            if success:
                logger.info("Generation succeeded with seed %d after %d attempt(s).", attempt_seed, attempt + 1)
                return GenerationResult(True, attempt_seed, attempt + 1, self.model.get_tile_grid())

            logger.debug("Attempt %d with seed %d ended in a contradiction.", attempt + 1, attempt_seed)

        logger.warning("Generation failed after %d attempts (first seed %d).", max_attempts, seed)
        return GenerationResult(False, attempt_seed, max_attempts, self.model.get_tile_grid())

    def generate_parallel(
        self,
        seeds: Sequence[int],
        max_attempts: int = 1,
        process_count: int | None = None,
    ) -> list[GenerationResult]:
        """Runs one independent generation per seed, distributed over worker processes.

        Every worker builds its own model from the configuration of this manager (including the predetermined tiles),
        so no state is shared between them.

        Args:
            seeds: The first seed of each run.
            max_attempts: The maximum number of attempts per run.
            process_count: The number of worker processes. Defaults to the number of physical CPU cores.

        Returns:
            The result of each run, in the order of 'seeds'.
        """
        if not seeds:
            return []
        if process_count is None:
            process_count = psutil.cpu_count(logical=False) or 1
        process_count = max(1, min(process_count, len(seeds)))

        tasks = [
            (
                self.model.width,
                self.model.height,
                self.model.tileset,
                self.model.on_boundary,
                self.model.recompute_interval,
                self.model.layout,
                self.model.predetermined,
                seed,
                max_attempts,
            )
            for seed in seeds
        ]

        logger.info("Running %d generation(s) on %d process(es).", len(tasks), process_count)
        if process_count == 1:
            return [_run_generation(task) for task in tasks]

        with Pool(process_count) as pool:
            return pool.map(_run_generation, tasks)


def _run_generation(
    task: tuple[int, int, HexTileset, BoundaryPredicate, int, HexLayout, dict[int, int], int, int],
) -> GenerationResult:
    """Worker entry point: builds a fresh manager and runs one retried generation."""
    width, height, tileset, on_boundary, recompute_interval, layout, predetermined, seed, max_attempts = task

    manager = HexWFCManager(width, height, tileset, on_boundary, recompute_interval, layout)
    for i, tile_index in predetermined.items():
        manager.model.predetermine(i % width, i // width, tile_index)
    return manager.generate_with_retries(max_attempts, seed)
