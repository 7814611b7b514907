# main.py
"""
Main entry point for the Ambient Field animation.

This script orchestrates the entire lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the window and seeds the field for its size.
4. Runs the frame loop until the window closes.
5. Handles clean shutdown.
"""
import logging
from utils import setup_logging, load_config
import cProfile
import pstats
import io

def main():
    """
    The main function to run the animation.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config('config.json')
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Ambient Field Starting ---")

    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from pointer import PointerState, InputAdapter
    from simulation import Simulation
    from visualization import Visualizer
    from frame_driver import FrameDriver

    # --- Component Initialization ---
    # 1. Initialize the visualizer first. It determines the surface size.
    visualizer = Visualizer(vis_params)

    # 2. Build the field for the window's logical size.
    sim = Simulation(sim_params, visualizer.logical_width, visualizer.logical_height)

    # 3. Wire input and the frame loop around one shared pointer record.
    pointer = PointerState()
    driver = FrameDriver(
        sim, pointer, visualizer,
        log_throttle=run_params.get('log_throttle_steps', 300)
    )
    InputAdapter(pointer, sim, visualizer.surface_size).attach(driver)

    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    if profiler:
        profiler.enable()
    try:
        driver.run(max_steps=run_params.get('max_steps', 0))
    finally:
        if profiler:
            profiler.disable()
        driver.stop()
        visualizer.close()
    logging.info("Frame loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20) # Print top 20 slowest functions
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Ambient Field Shutting Down ---")


if __name__ == "__main__":
    main()
