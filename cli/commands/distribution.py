#!/usr/bin/env python3
"""
Distribution Commands for the Distributor CLI

Commands for building the airdrop Merkle tree, publishing its root into the
recipients file, generating claim proofs and preparing the commit call.
"""

import sys
from typing import Optional

import click

from cli.main import CLIContext, handle_cli_error, load_json_file, pass_context, save_json_file
from merkle.hashing import Digest
from recipients.distribution import Distribution
from recipients.exceptions import RecipientsFileError
from recipients.schema import LAMPORTS_PER_SOL
from recipients.storage import RecipientsStorage, WalletInfo, generate_recipients_file

recipients_file_option = click.option(
    '--recipients-file', '-r',
    type=click.Path(dir_okay=False),
    help='Recipients file (default: distribution.recipients_file from config)',
)


def _storage(ctx: CLIContext, recipients_file: Optional[str]) -> RecipientsStorage:
    path = recipients_file or ctx.get_config('distribution.recipients_file')
    return RecipientsStorage(path, backup_count=ctx.get_config('distribution.backup_count', 5))


def _load_distribution(ctx: CLIContext, recipients_file: Optional[str]) -> Distribution:
    storage = _storage(ctx, recipients_file)
    workers = ctx.get_config('distribution.build_workers', 0) or None
    return Distribution.from_file(storage.load(), max_workers=workers)


def _proof_output(recipient_proof) -> dict:
    data = recipient_proof.model_dump(by_alias=True)
    data['proofHex'] = recipient_proof.proof_hex()
    return data


@click.group()
@pass_context
def tree(ctx: CLIContext):
    """
    Merkle tree commands.

    Build the tree for a recipients file and inspect it.
    """
    ctx.logger.debug("Tree command group invoked")


@tree.command('generate')
@recipients_file_option
@click.option('--write/--no-write', default=True,
              help='Write the computed root back into the recipients file')
@pass_context
@handle_cli_error
def tree_generate(ctx: CLIContext, recipients_file: Optional[str], write: bool):
    """
    Build the Merkle tree and publish its root.

    Examples:
        distributor tree generate
        distributor tree generate -r anchor/recipients.json --no-write
    """
    storage = _storage(ctx, recipients_file)
    distribution = _load_distribution(ctx, recipients_file)

    if write:
        storage.update_merkle_root(distribution.root_hex)

    result = distribution.summary()
    result['written'] = write
    ctx.output(result)


@tree.command('info')
@recipients_file_option
@pass_context
@handle_cli_error
def tree_info(ctx: CLIContext, recipients_file: Optional[str]):
    """Show tree statistics and check its structure."""
    distribution = _load_distribution(ctx, recipients_file)

    info = distribution.tree.get_tree_info()
    is_valid, errors = distribution.tree.validate_tree_structure()
    info['structure_valid'] = is_valid
    if errors:
        info['structure_errors'] = errors
    info['root_published'] = distribution.recipients_file.merkle_root == distribution.root_hex

    ctx.output(info)


@click.group()
@pass_context
def proof(ctx: CLIContext):
    """
    Claim proof commands.

    Generate, export and verify per-recipient inclusion proofs.
    """
    ctx.logger.debug("Proof command group invoked")


@proof.command('get')
@click.argument('public_key', required=False)
@click.option('--index', '-i', 'leaf_index', type=int, help='Leaf index instead of a public key')
@recipients_file_option
@pass_context
@handle_cli_error
def proof_get(ctx: CLIContext, public_key: Optional[str], leaf_index: Optional[int],
              recipients_file: Optional[str]):
    """
    Generate the claim proof for one recipient.

    Examples:
        distributor proof get 7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU
        distributor proof get --index 3 -o json
    """
    if (public_key is None) == (leaf_index is None):
        raise click.UsageError("Give exactly one of PUBLIC_KEY or --index")

    distribution = _load_distribution(ctx, recipients_file)

    if public_key is not None:
        recipient_proof = distribution.proof_for_recipient(public_key)
    else:
        recipient_proof = distribution.proof_for_index(leaf_index)

    ctx.output(_proof_output(recipient_proof))


@proof.command('export')
@recipients_file_option
@click.option('--output-file', '-f', type=click.Path(dir_okay=False),
              help='Write all proofs to this JSON file')
@pass_context
@handle_cli_error
def proof_export(ctx: CLIContext, recipients_file: Optional[str], output_file: Optional[str]):
    """Generate proofs for every recipient."""
    distribution = _load_distribution(ctx, recipients_file)
    proofs = distribution.all_proofs()

    data = {
        'merkleRoot': distribution.root_hex,
        'leafCount': distribution.leaf_count,
        'proofs': {key: p.model_dump(by_alias=True) for key, p in proofs.items()},
    }

    if output_file:
        save_json_file(data, output_file)
        ctx.output({'proofs_written': len(proofs), 'output_file': output_file,
                    'merkle_root': distribution.root_hex})
    else:
        ctx.output(data, format_override='json' if ctx.output_format in (None, 'table') else None)


@proof.command('verify')
@click.argument('public_key')
@click.option('--root', help='Root to verify against (default: merkleRoot from the recipients file)')
@recipients_file_option
@pass_context
@handle_cli_error
def proof_verify(ctx: CLIContext, public_key: str, root: Optional[str], recipients_file: Optional[str]):
    """Verify a recipient's proof against the published root."""
    distribution = _load_distribution(ctx, recipients_file)

    root_hex = root or distribution.recipients_file.merkle_root
    valid = distribution.verify_recipient(public_key, bytes(Digest.from_hex(root_hex)))

    ctx.output({
        'recipient': public_key,
        'leaf_index': distribution.index_of(public_key),
        'root': root_hex.lower(),
        'valid': valid,
    })

    if not valid:
        sys.exit(1)


@click.group()
@pass_context
def commit(ctx: CLIContext):
    """
    On-chain commit commands.

    Prepare the arguments for initializing the airdrop program.
    """
    ctx.logger.debug("Commit command group invoked")


@commit.command('args')
@recipients_file_option
@click.option('--allow-unpublished', is_flag=True,
              help='Skip the check that the file holds the computed root')
@pass_context
@handle_cli_error
def commit_args(ctx: CLIContext, recipients_file: Optional[str], allow_unpublished: bool):
    """
    Show the raw initialize_airdrop arguments.

    The root is given as a 32-element byte array and the amount in lamports.
    """
    distribution = _load_distribution(ctx, recipients_file)

    if not allow_unpublished:
        distribution.check_published_root()

    args = distribution.initialize_args()
    args['merkleRootHex'] = distribution.root_hex
    args['amountSol'] = distribution.total_amount / LAMPORTS_PER_SOL
    ctx.output(args, format_override='json' if ctx.output_format in (None, 'table') else None)


@click.group()
@pass_context
def recipients(ctx: CLIContext):
    """
    Recipients file commands.

    Generate and inspect the recipients file.
    """
    ctx.logger.debug("Recipients command group invoked")


@recipients.command('generate')
@click.option('--wallets-file', '-w', required=True, type=click.Path(exists=True, dir_okay=False),
              help='JSON list of {"name", "address", "funded"} wallet records')
@click.option('--program-id', help='Airdrop program id (default: program.id from config)')
@click.option('--amount', type=int, help='Lamports per recipient (default from config)')
@recipients_file_option
@pass_context
@handle_cli_error
def recipients_generate(ctx: CLIContext, wallets_file: str, program_id: Optional[str],
                        amount: Optional[int], recipients_file: Optional[str]):
    """
    Write a recipients file giving every wallet the same amount.

    Examples:
        distributor recipients generate -w wallets.json --amount 75000000
    """
    wallets_data = load_json_file(wallets_file)
    if not isinstance(wallets_data, list):
        raise RecipientsFileError(f"{wallets_file} must contain a JSON list of wallets")

    wallets = [WalletInfo.from_dict(w) for w in wallets_data]
    amount = amount if amount is not None else ctx.get_config('distribution.default_amount_lamports')
    if amount <= 0:
        raise click.BadParameter("Amount must be positive", param_hint='--amount')

    result = generate_recipients_file(
        _storage(ctx, recipients_file),
        wallets,
        program_id or ctx.get_config('program.id'),
        amount_lamports=amount,
        network=ctx.get_config('network.cluster', 'devnet'),
    )

    ctx.output({
        'recipients_file': str(_storage(ctx, recipients_file).file_path),
        'recipient_count': result.recipient_count,
        'total_amount': result.total_amount_lamports,
        'total_amount_sol': result.total_amount_sol,
        'merkle_root': result.merkle_root,
    })


@recipients.command('list')
@recipients_file_option
@pass_context
@handle_cli_error
def recipients_list(ctx: CLIContext, recipients_file: Optional[str]):
    """List the recipients in index order."""
    recipients_data = _storage(ctx, recipients_file).load()

    rows = [
        {
            'index': entry.index,
            'public_key': entry.public_key,
            'amount': entry.amount_lamports,
            'description': entry.description or '',
        }
        for entry in sorted(recipients_data.recipients, key=lambda e: e.index)
    ]
    ctx.output(rows)
