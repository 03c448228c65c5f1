import os
import threading
import time

import numpy as np
import psutil

from echo_mirror import Engine, AudioSettings, AnalyzerSettings


def get_process_memory():
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / 1024 / 1024  # MB


def build_signal(duration_sec: float, sample_rate: int) -> np.ndarray:
    """Stereo test signal: noise floor, a voice-like tone burst and clicks."""
    n = int(duration_sec * sample_rate)
    t = np.arange(n) / sample_rate
    rng = np.random.default_rng(0)

    mono = rng.normal(0, 0.01, size=n)
    mono += 0.4 * np.sin(2 * np.pi * 180 * t) * ((t % 4.0) < 1.5)
    clicks = (np.arange(n) % (sample_rate * 3)) < 64
    mono[clicks] += rng.uniform(-0.8, 0.8, size=int(clicks.sum()))

    left = np.clip(mono, -1, 1)
    right = np.clip(mono * 0.7, -1, 1)
    return np.column_stack([left, right]).astype(np.float32)


def benchmark():
    print("Starting Benchmark...")

    # 1. Baseline Memory
    baseline_mem = get_process_memory()
    print(f"Baseline Memory: {baseline_mem:.2f} MB")

    # 2. Init Engine
    start_time = time.time()
    audio_config = AudioSettings(sample_rate=44100, chunk_size=2048)
    events = []
    engine = Engine(
        settings=AnalyzerSettings(),
        audio_config=audio_config,
        on_event=events.append,
    )

    init_time = (time.time() - start_time) * 1000
    loaded_mem = get_process_memory()
    print(f"Engine Initialized in: {init_time:.2f} ms")
    print(f"Loaded Memory: {loaded_mem:.2f} MB (Delta: {loaded_mem - baseline_mem:.2f} MB)")

    # 3. Processing Benchmark
    duration_sec = 60
    chunk_size = audio_config.chunk_size
    audio_data = build_signal(duration_sec, audio_config.sample_rate)
    total_chunks = len(audio_data) // chunk_size
    deadline_ms = audio_config.block_duration * 1000

    print(f"Processing {duration_sec}s of audio ({total_chunks} blocks)...")

    cpu_usages = []
    block_times = []

    # Simple CPU monitor thread
    monitor_running = True

    def monitor_cpu():
        p = psutil.Process()
        while monitor_running:
            cpu_usages.append(p.cpu_percent(interval=0.1))

    t = threading.Thread(target=monitor_cpu)
    t.start()

    process_start = time.time()
    for i in range(total_chunks):
        chunk = audio_data[i * chunk_size : (i + 1) * chunk_size]
        block_start = time.perf_counter()
        engine.process_chunk(chunk, now=i * audio_config.block_duration)
        block_times.append((time.perf_counter() - block_start) * 1000)

    process_end = time.time()
    monitor_running = False
    t.join()

    total_time = process_end - process_start
    realtime_factor = total_time / duration_sec
    avg_cpu = sum(cpu_usages) / len(cpu_usages) if cpu_usages else 0
    final_mem = get_process_memory()
    block_times = np.array(block_times)
    missed = int(np.sum(block_times > deadline_ms))

    print("-" * 30)
    print(f"Processing Time: {total_time:.2f} s")
    print(f"Real-time Factor: {realtime_factor:.4f}x (Lower is better, <1.0 is realtime)")
    print(f"Block Deadline: {deadline_ms:.2f} ms")
    print(f"Block Time: mean {block_times.mean():.3f} ms, p99 {np.percentile(block_times, 99):.3f} ms, max {block_times.max():.3f} ms")
    print(f"Missed Deadlines: {missed}/{total_chunks}")
    print(f"Events Emitted: {len(events)}")
    print(f"Average CPU Usage (Single Core): {avg_cpu:.1f}%")
    print(f"Peak Memory: {final_mem:.2f} MB")
    print("-" * 30)

    engine.close()


if __name__ == "__main__":
    benchmark()
