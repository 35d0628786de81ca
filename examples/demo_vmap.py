import time

import jax
import jax.numpy as jnp

from chippy import create_state, load_program, run_batch
from example import HEX_DIGITS, build_rom


if __name__ == "__main__":
    num_machines = 1000
    num_instructions = 10_000

    rngs = jax.random.split(jax.random.PRNGKey(0), num_machines)
    states = jax.vmap(create_state)(rngs)
    states = load_program(states, build_rom(HEX_DIGITS))

    start_compile = time.perf_counter()
    jax.block_until_ready(run_batch(states, num_instructions))
    end_compile = time.perf_counter()
    print("First run, including compilation (s):", end_compile - start_compile)

    start_exec = time.perf_counter()
    final_states = jax.block_until_ready(run_batch(states, num_instructions))
    end_exec = time.perf_counter()
    elapsed = end_exec - start_exec

    print("Execution time (s):", elapsed)
    print(f"Throughput: {num_machines * num_instructions / elapsed:,.0f} instructions/s")
    print("Lit pixels per machine:", jnp.sum(final_states.display, axis=1)[:4])
