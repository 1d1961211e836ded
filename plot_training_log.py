import argparse
import os

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

# ==========================================
# CONFIGURATION
# ==========================================
CSV_FILE = "logs/episodes.csv"
OUTPUT_IMG = "training_dashboard.png"

RESULT_COLORS = {
    'win': 'seagreen',
    'loss': 'crimson',
    'dq': 'darkorange',
    'opponent-dq': 'gray',
    'tie': 'steelblue',
}


def result_rates(df: pd.DataFrame, window: int) -> pd.DataFrame:
    """Rolling share of each episode result over `window` games."""
    results = df['Result'].fillna('tie')
    rates = pd.DataFrame(index=df.index)
    for name in RESULT_COLORS:
        rates[name] = (results == name).astype(float).rolling(window, min_periods=1).mean()
    return rates


def plot_training_log(csv_file=CSV_FILE, output_img=OUTPUT_IMG, window=100):
    if not os.path.exists(csv_file):
        print(f"❌ File not found: {csv_file}")
        return None

    sns.set_theme(style="whitegrid", rc={"grid.linestyle": ":"})

    df = pd.read_csv(csv_file)

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(14, 12), sharex=True)
    plt.subplots_adjust(hspace=0.15)

    # ---------------------------------------------------------
    # PLOT 1: EPISODE RESULTS
    # ---------------------------------------------------------
    rates = result_rates(df, window)
    for name, color in RESULT_COLORS.items():
        ax1.plot(df['Episode'], rates[name], color=color, label=name, linewidth=2)
    ax1.set_ylabel("Share of games", fontsize=12, fontweight='bold')
    ax1.set_title(f"Episode Results (rolling {window})", fontsize=16, fontweight='bold', pad=15)
    ax1.legend(loc='center right', frameon=True, fontsize=11)
    ax1.set_ylim(-0.05, 1.05)

    # ---------------------------------------------------------
    # PLOT 2: REWARD
    # ---------------------------------------------------------
    ax2.plot(df['Episode'], df['Reward'], color='rebeccapurple', alpha=0.1)
    ax2.plot(df['Episode'], df['Reward'].rolling(window, min_periods=1).mean(),
             color='rebeccapurple', linewidth=2.5, label='Mean episode reward')
    ax2.set_ylabel("Reward", fontsize=12, fontweight='bold')
    ax2.legend(loc='upper left', frameon=True, fontsize=11)

    # ---------------------------------------------------------
    # PLOT 3: LOSS + EPSILON
    # ---------------------------------------------------------
    loss = pd.to_numeric(df['Loss'], errors='coerce')
    ax3.plot(df['Episode'], loss, color='black', alpha=0.6, linewidth=1, label='Loss')
    ax3.set_ylabel("Loss", fontsize=12, fontweight='bold')
    ax3.set_xlabel("Episode", fontsize=12, fontweight='bold')

    eps_ax = ax3.twinx()
    eps_ax.plot(df['Episode'], df['Epsilon'], color='steelblue', linestyle='--', linewidth=2, label='Epsilon')
    eps_ax.set_ylabel("Epsilon", fontsize=12, fontweight='bold')
    eps_ax.set_ylim(0, 1.0)
    eps_ax.grid(False)

    plt.savefig(output_img, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"✅ Dashboard saved to: {output_img}")
    return output_img


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Plot a DQN training log.')
    parser.add_argument("--csv", type=str, default=CSV_FILE, help="episodes.csv written by MetricLogger")
    parser.add_argument("--out", type=str, default=OUTPUT_IMG)
    parser.add_argument("--window", type=int, default=100)
    args = parser.parse_args()

    plot_training_log(args.csv, args.out, args.window)
