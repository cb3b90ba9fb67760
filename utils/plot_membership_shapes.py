import argparse
import os
import tomllib

import matplotlib.pyplot as plt

from vehicle_flc.fuzzifier import TRIANGULAR, VariableRegistry


def plot_membership_functions(variable, points=None, save=False, output_dir="plots", show=True):
    """
    Plot the fuzzy sets of one linguistic variable.
    Optionally overlay crisp samples as red dots at their highest membership.
    Args:
        variable (LinguisticVariable): The variable to draw.
        points (list of float): Crisp values to overlay (optional)
        save (bool): Whether to save the plot as a PNG
        output_dir (str): Directory to save the plot
        show (bool): Open an interactive window
    Returns:
        matplotlib.figure.Figure: The figure.
    """
    fig = plt.figure(figsize=(8, 4))
    for fuzzy_set in variable.sets:
        a, b, c, d = fuzzy_set.points
        if fuzzy_set.shape == TRIANGULAR:
            xs, ys = [a, b, d], [0, 1, 0]
        else:
            xs, ys = [a, b, c, d], [0, 1, 1, 0]
        plt.plot(xs, ys, label=fuzzy_set.name)
        plt.fill_between(xs, ys, alpha=0.1)

    if points:
        degrees = [max(s.membership(x) for s in variable.sets) for x in points]
        plt.scatter(
            points,
            degrees,
            color="red",
            s=30,
            marker="o",
            edgecolors="black",
            linewidths=0.8,
            label="samples",
            zorder=10,
        )

    plt.title(f"Membership Functions – {variable.name}")
    plt.xlabel(variable.name)
    plt.ylabel("Membership Degree")
    plt.xlim(*variable.domain)
    plt.grid(True)
    plt.legend()
    plt.tight_layout()

    if save:
        os.makedirs(output_dir, exist_ok=True)
        filename = os.path.join(output_dir, f"{variable.name}_membership_functions.png")
        fig.savefig(filename)
        print(f"Saved plot to: {filename}")

    if show:
        plt.show()
    return fig


def main():
    parser = argparse.ArgumentParser(
        description="Plot fuzzy membership function shapes of a knowledge base."
    )
    parser.add_argument(
        "config",
        nargs="?",
        default=os.path.join("config", "suspension_flc.toml"),
        help="Controller TOML file.",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save plots as PNG files in the 'plots/' directory.",
    )
    args = parser.parse_args()
    if not os.path.exists(args.config):
        parser.error(f"Config file not found at: {args.config}")

    with open(args.config, "rb") as f:
        registry = VariableRegistry.from_config(tomllib.load(f))

    for variable in registry.inputs + registry.outputs:
        plot_membership_functions(variable, save=args.save, show=not args.save)


if __name__ == "__main__":
    main()
