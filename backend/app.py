import logging
from pathlib import Path

import click
import networkx as nx
from flask import Flask, current_app, jsonify, request
from flask_cors import CORS  # Import CORS
from sympy import SympifyError

import expression as ex
from config import DefaultConfig
from mason_solver import MasonSolver


class GraphTooLarge(ValueError):
    pass


class MissingField(ValueError):
    pass


def require(data, *keys):
    for key in keys:
        if key not in data:
            raise MissingField(f"Missing field: {key}")


def build_solver(data, logger):
    input_node = data.get('input_node')
    output_node = data.get('output_node')
    if 'equations' in data:
        solver = MasonSolver.from_equations(
            data['equations'],
            input_node,
            output_node,
            node_pattern=current_app.config['NODE_PATTERN'],
            logger=logger,
        )
    else:
        require(data, 'nodes', 'edges')
        if not isinstance(data['edges'], list) or not isinstance(data['nodes'], list):
            raise ValueError("'nodes' and 'edges' must be lists")
        for edge in data['edges']:
            if not isinstance(edge, dict):
                raise ValueError(f"Edge {edge!r} must be an object")
            require(edge, 'from', 'to')
        for node in data['nodes']:
            if isinstance(node, dict):
                require(node, 'id')
        solver = MasonSolver(
            nodes=data['nodes'],
            edges=data['edges'],
            input_node=input_node,
            output_node=output_node,
            logger=logger,
        )
    limit = current_app.config['MAX_GRAPH_NODES']
    if len(solver.G) > limit:
        raise GraphTooLarge(f"Graph has {len(solver.G)} nodes, the limit is {limit}")
    return solver


def error_response(exc):
    if isinstance(exc, GraphTooLarge):
        return jsonify({'error': str(exc)}), 413
    if isinstance(exc, (ValueError, SympifyError)):
        return jsonify({'error': str(exc)}), 400
    current_app.logger.exception("Transfer function computation failed")
    return jsonify({'error': str(exc)}), 500


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_object(config or DefaultConfig)
    app.config.from_prefixed_env("MASONYX")
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Configure CORS to allow requests from your frontend
    CORS(app, resources={
        r"/compute-transfer-function": {"origins": app.config['CORS_ORIGINS']},
        r"/compute-loop-gain": {"origins": app.config['CORS_ORIGINS']},
    })

    @app.route('/compute-transfer-function', methods=['POST'])
    def compute_tf():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': "Expected a JSON object"}), 400
        missing = [k for k in ('input_node', 'output_node') if data.get(k) is None]
        if missing:
            return jsonify({'error': f"Missing field: {missing[0]}"}), 400
        try:
            solver = build_solver(data, app.logger)
            tf = solver.solve()
        except Exception as e:
            return error_response(e)

        response = {
            'result': str(tf),
            'numerator': ex.to_string(tf.numerator),
            'denominator': ex.to_string(tf.denominator),
            'bode': {
                'phase': ex.to_string(tf.bode_phase),
                'magnitude': ex.to_string(tf.bode_magnitude),
            },
            'forward_paths': [p.nodes for p in tf.forward_paths],
            'loop_count': len(tf.loops),
            'graph': nx.node_link_data(solver.G.to_networkx(), edges='links'),
        }
        if not tf.forward_paths:
            response['warning'] = "No path between input and output nodes"
        return jsonify(response)

    @app.route('/compute-loop-gain', methods=['POST'])
    def compute_lg():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': "Expected a JSON object"}), 400
        try:
            solver = build_solver(data, app.logger)
            lg = solver.loop_gain()
        except Exception as e:
            return error_response(e)
        return jsonify({
            'loop_gain': ex.to_string(lg.gain),
            'bode': {
                'phase': ex.to_string(lg.phase),
                'magnitude': ex.to_string(lg.magnitude),
            },
        })

    @app.cli.command('solve')
    @click.argument('equations_file', type=click.Path(exists=True, dir_okay=False))
    @click.option('--start', required=True, help='Input node id.')
    @click.option('--end', required=True, help='Output node id.')
    def solve_command(equations_file, start, end):
        """Print the transfer function END/START of the equations in EQUATIONS_FILE."""
        lines = Path(equations_file).read_text().splitlines()
        equations = [line.strip() for line in lines if line.strip() and not line.lstrip().startswith('#')]
        try:
            solver = MasonSolver.from_equations(
                equations, start, end,
                node_pattern=app.config['NODE_PATTERN'],
                logger=app.logger,
            )
            tf = solver.solve()
        except (ValueError, SympifyError) as e:
            raise click.ClickException(str(e))

        click.echo('SFG:')
        click.echo(solver.describe())
        click.echo(f"{end}/{start} = {tf}")
        click.echo(f"Bode phase: {ex.to_string(tf.bode_phase)}")
        click.echo(f"Bode magnitude: {ex.to_string(tf.bode_magnitude)}")

    return app


app = create_app()

if __name__ == '__main__':
    logging.basicConfig(level=app.config['LOG_LEVEL'])
    app.run(debug=app.config['DEBUG'], port=app.config['PORT'])
