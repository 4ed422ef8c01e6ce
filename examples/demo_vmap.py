import sys
import time
import timeit

import jax
import jax.numpy as jnp
import numpy as np
from PIL import Image

from chipax import create_state, load, run_steps, tick, batch_render, HaltCode

# Each machine draws a random digit at a random position, then loops
DEMO_ROM = bytes([
    0xC0, 0x3F,  # V0 = rand & 0x3F
    0xC1, 0x1F,  # V1 = rand & 0x1F
    0xC2, 0x0F,  # V2 = rand & 0x0F
    0xA0, 0x00,  # I = 0
    0xF2, 0x1E, 0xF2, 0x1E, 0xF2, 0x1E, 0xF2, 0x1E, 0xF2, 0x1E,  # I = V2 * 5
    0xD0, 0x15,  # draw glyph at (V0, V1)
    0x12, 0x00,  # start over
])


def time_it_measure(bench, repeat=10, number=3) -> np.ndarray:
    times = timeit.repeat(bench, repeat=repeat, number=number)
    return np.array(times) / number


def make_batch(rom: bytes, num_machines: int):
    rngs = jax.random.split(jax.random.PRNGKey(0), num_machines)
    return jax.vmap(lambda rng: load(create_state(rng), rom))(rngs)


@jax.jit
def run_frames(state):
    def frame(state, _):
        state = run_steps(state, 10, diagnostics=False)
        return tick(state), None

    state, _ = jax.lax.scan(frame, state, length=60)
    return state


if __name__ == "__main__":
    num_machines = int(sys.argv[1]) if len(sys.argv) > 1 else 1000
    states = make_batch(DEMO_ROM, num_machines)

    # Measure compilation time
    start_compile = time.perf_counter()
    compiled = jax.jit(jax.vmap(run_frames)).lower(states).compile()
    end_compile = time.perf_counter()
    print("Compilation time (s):", end_compile - start_compile)

    final = jax.block_until_ready(compiled(states))

    def bench():
        jax.block_until_ready(compiled(states))

    times = time_it_measure(bench)
    print("Mean time (s):", times.mean())
    print("Q1 (s):", np.quantile(times, 0.25))
    print("Q3 (s):", np.quantile(times, 0.75))
    print("Halted machines:", int(jnp.sum(final.halt_code != int(HaltCode.NONE))))

    grid = batch_render(final.display[:16], scale=4, color_scheme="green")
    Image.fromarray(grid).save("demo_vmap.png")
    print("Saved demo_vmap.png")
